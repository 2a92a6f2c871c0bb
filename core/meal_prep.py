"""
core/meal_prep.py
────────────────────────────────────────────────────────────────────────
Week-level shopping / prep checklist rolled up from the active plan.

The plan's meal list is walked once per day label (Monday … Sunday), so
a single day's meals count seven times; weekday-specific variations in
`weekDays` are not looked at.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Tuple

import pandas as pd
from sqlalchemy.ext.asyncio import AsyncSession

from core.helpers import DAY_LABELS, round_half_up
from core.models.diet_plan import DietPlan, MealType
from core.models.meal_prep import MealPrepItem, MealPrepPlan
from core.parsing import parse_grams
from core.plan_normalizer import get_active_diet_plan

_LOG = logging.getLogger(__name__)

BASE_PREP_MINUTES = 15
MINUTES_PER_FOOD = 10


def prep_note_for(total_grams: float) -> str:
    if total_grams > 500:
        return "Cook in large batch, refrigerate for 4–5 days"
    if total_grams >= 200:
        return "Prepare in one session, portion into containers"
    return "Prepare fresh or 1–2 days in advance"


def _first_seen_order(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def aggregate_meal_prep(plan: DietPlan) -> Tuple[List[MealPrepItem], int]:
    """Returns (items sorted by total mass desc, meals prepped)."""
    rows = []
    total_meals = 0
    for day in DAY_LABELS:
        for meal in plan.meals:
            total_meals += 1
            for food in meal.foods:
                rows.append({
                    "key": food.name.strip().lower(),
                    "food_name": food.name,
                    "grams": parse_grams(food.amount),
                    "meal_type": meal.meal_type.value,
                    "day": day,
                })

    if not rows:
        return [], total_meals

    df = pd.DataFrame(rows)
    grouped = df.groupby("key", sort=False).agg(
        food_name=("food_name", "first"),
        total=("grams", "sum"),
        meal_types=("meal_type", _first_seen_order),
        days_used=("day", _first_seen_order),
    )
    grouped["total_grams"] = grouped["total"].map(round_half_up)
    grouped["prep_notes"] = grouped["total"].map(prep_note_for)
    grouped = grouped.sort_values("total_grams", ascending=False, kind="stable")

    items = [
        MealPrepItem(
            food_name=row.food_name,
            total_grams=int(row.total_grams),
            meal_types=[MealType(t) for t in row.meal_types],
            days_used=list(row.days_used),
            prep_notes=row.prep_notes,
        )
        for row in grouped.itertuples(index=False)
    ]
    return items, total_meals


async def build_meal_prep_plan(
    db: AsyncSession, user_id: str, today: date | None = None
) -> MealPrepPlan:
    week_start = datetime.combine(today or date.today(), time.min)
    week_end = week_start + timedelta(days=6)

    plan = await get_active_diet_plan(db, user_id)
    if plan is None:
        return MealPrepPlan(
            week_start=week_start,
            week_end=week_end,
            items=[],
            estimated_prep_time_minutes=BASE_PREP_MINUTES,
            total_meals_prepped=0,
        )

    items, total_meals = aggregate_meal_prep(plan)
    _LOG.debug("meal prep for %s: %d distinct foods", user_id, len(items))
    return MealPrepPlan(
        week_start=week_start,
        week_end=week_end,
        items=items,
        estimated_prep_time_minutes=BASE_PREP_MINUTES + MINUTES_PER_FOOD * len(items),
        total_meals_prepped=total_meals,
    )
