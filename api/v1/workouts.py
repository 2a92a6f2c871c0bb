# api/v1/workouts.py
from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.workout import (
    CarbCyclePlan,
    DayCalorieAdjustment,
    MacroTargets,
    WorkoutMealWindow,
)
from core.workouts import (
    generate_carb_cycle_plan,
    get_adjusted_targets_for_date,
    get_today_carb_cycle_targets,
    get_workout_meal_windows,
)
from services.db import get_session

router = APIRouter()


@router.get("/{user_id}/targets", response_model=DayCalorieAdjustment)
async def adjusted_targets(
    user_id: str,
    day: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> DayCalorieAdjustment:
    return await get_adjusted_targets_for_date(db, user_id, day or date.today())


@router.get("/{user_id}/meal-windows", response_model=WorkoutMealWindow)
async def meal_windows(
    user_id: str,
    day: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> WorkoutMealWindow:
    windows = await get_workout_meal_windows(db, user_id, day or date.today())
    if windows is None:
        raise HTTPException(status_code=404, detail="No workout scheduled for this day")
    return windows


@router.post("/{user_id}/carb-cycle", response_model=CarbCyclePlan)
async def create_carb_cycle(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> CarbCyclePlan:
    return await generate_carb_cycle_plan(db, user_id)


@router.get("/{user_id}/carb-cycle/today", response_model=MacroTargets)
async def carb_cycle_today(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> MacroTargets:
    return await get_today_carb_cycle_targets(db, user_id)
