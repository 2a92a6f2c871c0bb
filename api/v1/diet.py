# api/v1/diet.py
from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.adaptive import (
    apply_adaptation_suggestion,
    get_adaptation_feedback,
    run_weekly_adaptive_analysis,
)
from core.meal_prep import build_meal_prep_plan
from core.models.adaptation import (
    AdaptationFeedback,
    AdaptationSuggestion,
    WeeklyAdaptiveAnalysisResult,
)
from core.models.diet_plan import DietPlan, SuggestedMeal
from core.models.generated_plan import GeneratedMealPlan
from core.models.meal_prep import MealPrepPlan
from core.plan_generator import generate_plan_for_user, save_generated_plan
from core.plan_normalizer import get_active_diet_plan
from core.suggestions import (
    calculate_daily_adherence,
    dismiss_suggestion,
    get_visible_suggestions,
)
from services.db import get_session
from api.v1.schemas import AdherenceOut, PlanSavedOut

router = APIRouter()


# ───────────────────────── today ────────────────────────────
@router.get("/{user_id}/suggestions", response_model=list[SuggestedMeal])
async def suggestions_for_today(
    user_id: str,
    day: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> list[SuggestedMeal]:
    """Meals still to eat today, minus the ones dismissed for the day."""
    return await get_visible_suggestions(db, user_id, day)


@router.post(
    "/{user_id}/suggestions/{meal_id}/dismiss",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def dismiss(
    user_id: str,
    meal_id: str,
    day: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> Response:
    await dismiss_suggestion(db, user_id, meal_id, day)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/adherence", response_model=AdherenceOut)
async def adherence(
    user_id: str,
    day: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> AdherenceOut:
    day = day or date.today()
    score = await calculate_daily_adherence(db, user_id, day)
    return AdherenceOut(user_id=user_id, day=day, adherence=score)


# ───────────────────────── adaptations ──────────────────────
@router.post(
    "/{user_id}/adaptations/analyze",
    response_model=WeeklyAdaptiveAnalysisResult,
)
async def analyze(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> WeeklyAdaptiveAnalysisResult:
    return await run_weekly_adaptive_analysis(db, user_id)


@router.post(
    "/{user_id}/adaptations/apply",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def apply(
    user_id: str,
    body: AdaptationSuggestion,
    db: AsyncSession = Depends(get_session),
) -> Response:
    await apply_adaptation_suggestion(db, body, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{user_id}/adaptations/feedback",
    response_model=list[AdaptationFeedback],
)
async def feedback(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> list[AdaptationFeedback]:
    return await get_adaptation_feedback(db, user_id)


# ───────────────────────── plans ────────────────────────────
@router.get("/{user_id}/plans/active", response_model=DietPlan)
async def active_plan(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> DietPlan:
    plan = await get_active_diet_plan(db, user_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="No active plan")
    return plan


@router.post("/{user_id}/plans/generate", response_model=GeneratedMealPlan)
async def preview_generated_plan(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> GeneratedMealPlan:
    return await generate_plan_for_user(db, user_id)


@router.post(
    "/{user_id}/plans",
    response_model=PlanSavedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Save a generated plan (generates one when no body is sent)",
)
async def save_plan(
    user_id: str,
    body: GeneratedMealPlan | None = None,
    db: AsyncSession = Depends(get_session),
) -> PlanSavedOut:
    plan = body or await generate_plan_for_user(db, user_id)
    record = await save_generated_plan(db, plan, user_id)
    return PlanSavedOut(
        id=record.id,
        name=record.name,
        is_active=record.is_active,
        start_date=record.start_date,
        end_date=record.end_date,
    )


@router.get("/{user_id}/meal-prep", response_model=MealPrepPlan)
async def meal_prep(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> MealPrepPlan:
    return await build_meal_prep_plan(db, user_id)
