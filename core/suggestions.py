"""
core/suggestions.py
────────────────────────────────────────────────────────────────────────
"What's left to eat today" plus the daily adherence score.

* `get_suggested_meals_for_today()` – plan meals whose type was not
  logged yet today (or two generic meals when there is no plan)
* `calculate_daily_adherence()`     – logged / target calories, capped at 100
* `dismiss_suggestion()` / `get_visible_suggestions()` – per-user, per-day hiding
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from core.helpers import day_range, round_half_up, to_epoch_ms
from core.models.diet_plan import MealType, PlanFood, SuggestedMeal
from core.parsing import normalize_logged_meal_type
from core.plan_normalizer import get_active_diet_plan, sort_by_time_window
from services.db import get_logged_meals_between, get_user
from services.kv_store import get_item, set_item

_LOG = logging.getLogger(__name__)

DEFAULT_CALORIE_TARGET = 2000
CALORIE_FLOOR = 1200


def _dismissed_key(user_id: str, meal_id: str, day: date) -> str:
    return f"dismissed_suggestion_{user_id}_{meal_id}_{day.isoformat()}"


def generic_suggestions(target_calories: float | None) -> List[SuggestedMeal]:
    base = max(CALORIE_FLOOR, target_calories or DEFAULT_CALORIE_TARGET)
    return [
        SuggestedMeal(
            id="generic-lunch",
            meal_type=MealType.lunch,
            name="Balanced Lunch Bowl",
            target_calories=round_half_up(base * 0.35),
            target_protein=35,
            target_carbs=50,
            target_fats=18,
            foods=[
                PlanFood(name="Grilled chicken", amount="150g", calories=250),
                PlanFood(name="Brown rice", amount="120g", calories=150),
                PlanFood(name="Mixed vegetables", amount="100g", calories=60),
            ],
            time_window_start="12:00",
            time_window_end="14:30",
            priority=1,
        ),
        SuggestedMeal(
            id="generic-dinner",
            meal_type=MealType.dinner,
            name="Protein-Centered Dinner",
            target_calories=round_half_up(base * 0.30),
            target_protein=40,
            target_carbs=35,
            target_fats=16,
            foods=[
                PlanFood(name="Salmon or tofu", amount="160g", calories=280),
                PlanFood(name="Sweet potato", amount="140g", calories=120),
                PlanFood(name="Leafy salad", amount="80g", calories=40),
            ],
            time_window_start="18:00",
            time_window_end="21:00",
            priority=2,
        ),
    ]


async def get_suggested_meals_for_today(
    db: AsyncSession, user_id: str, day: date | None = None
) -> List[SuggestedMeal]:
    day = day or date.today()
    plan = await get_active_diet_plan(db, user_id)

    if plan is None:
        user = await get_user(db, user_id)
        _LOG.debug("no active plan for %s → generic suggestions", user_id)
        return generic_suggestions(user.calorie_target if user else None)

    start, end = day_range(day)
    logged = await get_logged_meals_between(db, user_id, start, end)
    logged_types = {normalize_logged_meal_type(m.meal_type) for m in logged}

    remaining = [m for m in plan.meals if m.meal_type not in logged_types]
    return [
        meal.model_copy(update={"priority": rank})
        for rank, meal in enumerate(sort_by_time_window(remaining), start=1)
    ]


async def calculate_daily_adherence(
    db: AsyncSession, user_id: str, day: date
) -> float:
    start, end = day_range(day)
    logged = await get_logged_meals_between(db, user_id, start, end)
    user = await get_user(db, user_id)

    total = sum(m.total_calories or 0 for m in logged)
    target = max((user.calorie_target if user else 0) or 0, 1)
    return min(100.0, total / target * 100)


# ─────────────────────────────── dismissal ─────────────────────────── #
async def dismiss_suggestion(
    db: AsyncSession,
    user_id: str,
    meal_id: str,
    day: date | None = None,
    now: datetime | None = None,
) -> None:
    day = day or date.today()
    await set_item(db, _dismissed_key(user_id, meal_id, day), str(to_epoch_ms(now or datetime.now())))


async def get_visible_suggestions(
    db: AsyncSession, user_id: str, day: date | None = None
) -> List[SuggestedMeal]:
    day = day or date.today()
    visible: List[SuggestedMeal] = []
    for meal in await get_suggested_meals_for_today(db, user_id, day):
        if not await get_item(db, _dismissed_key(user_id, meal.id, day)):
            visible.append(meal)
    return visible
