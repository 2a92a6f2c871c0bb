"""
core/workouts.py
────────────────────────────────────────────────────────────────────────
Training-aware nutrition targets built on the user's workout schedule:

* `get_adjusted_targets_for_date()`  – calorie / macro bump on workout days
* `get_workout_meal_windows()`       – pre / post workout eating windows
* `generate_carb_cycle_plan()`       – weekly high / low / refeed pattern
* `get_today_carb_cycle_targets()`   – today's macros from the stored cycle
"""
from __future__ import annotations

import json
import logging
import math
from datetime import date
from typing import Dict

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.helpers import DAY_LABELS, minutes_to_hm, round_half_up, weekday_name
from core.models.workout import (
    CarbCyclePlan,
    DayCalorieAdjustment,
    MacroTargets,
    PostWorkoutWindow,
    PreWorkoutWindow,
    WorkoutMealWindow,
)
from core.parsing import parse_time_to_minutes, to_number
from services.db import User, WorkoutSchedule, get_user, get_workout_schedules
from services.kv_store import get_item, set_item

_LOG = logging.getLogger(__name__)

# intensity → (kcal, protein, carbs, reason)
_INTENSITY_BUMPS: Dict[str, tuple[int, int, int, str]] = {
    "heavy": (300, 20, 40, "Heavy training day detected. Added fuel for performance and recovery."),
    "moderate": (150, 10, 20, "Moderate workout day detected. Added a moderate energy bump."),
    "light": (75, 5, 10, "Light workout day detected. Added a light energy bump."),
}


def _carb_cycle_key(user_id: str) -> str:
    return f"carb_cycle_plan_{user_id}"


def base_targets(user: User | None) -> MacroTargets:
    return MacroTargets(
        calories=(user.calorie_target if user else None) or 2000,
        protein=(user.protein_target if user else None) or 120,
        carbs=(user.carbs_target if user else None) or 220,
        fats=(user.fats_target if user else None) or 70,
    )


def infer_intensity(schedule: WorkoutSchedule) -> str:
    intensity = str(schedule.intensity or "").lower()
    burn = to_number(schedule.estimated_calories_burned)
    if intensity == "heavy" or burn > 500:
        return "heavy"
    if intensity == "moderate" or 200 <= burn <= 500:
        return "moderate"
    return "light"


# ───────────────────────── workout-day targets ────────────────────── #
async def get_adjusted_targets_for_date(
    db: AsyncSession, user_id: str, day: date
) -> DayCalorieAdjustment:
    base = base_targets(await get_user(db, user_id))
    schedules = await get_workout_schedules(db, user_id, weekday_name(day))

    if not schedules:
        return DayCalorieAdjustment(
            base_calories=base.calories,
            adjusted_calories=base.calories,
            adjusted_protein=base.protein,
            adjusted_carbs=base.carbs,
            adjusted_fats=base.fats,
            reason="No workout scheduled for this day.",
            workout_intensity="none",
        )

    intensity = infer_intensity(schedules[0])
    kcal, protein, carbs, reason = _INTENSITY_BUMPS[intensity]
    return DayCalorieAdjustment(
        base_calories=base.calories,
        adjusted_calories=base.calories + kcal,
        adjusted_protein=base.protein + protein,
        adjusted_carbs=base.carbs + carbs,
        adjusted_fats=base.fats,
        reason=reason,
        workout_intensity=intensity,
    )


# ───────────────────────── pre / post windows ─────────────────────── #
async def get_workout_meal_windows(
    db: AsyncSession, user_id: str, day: date
) -> WorkoutMealWindow | None:
    schedules = await get_workout_schedules(db, user_id, weekday_name(day))
    if not schedules:
        return None

    schedule = schedules[0]
    start = parse_time_to_minutes(schedule.scheduled_time or "18:00")
    if math.isinf(start):
        start = parse_time_to_minutes("18:00")
    start = int(start)
    end = start + int(to_number(schedule.estimated_duration_minutes, 60))

    return WorkoutMealWindow(
        pre_workout=PreWorkoutWindow(
            ideal_eat_time=minutes_to_hm(start - 90, wrap=True),
            latest_eat_time=minutes_to_hm(start - 60, wrap=True),
            target_calories=350,
            target_carbs=45,
            target_protein=20,
            suggestion="Choose easily digestible carbs and lean protein before training.",
        ),
        post_workout=PostWorkoutWindow(
            ideal_eat_time=minutes_to_hm(end + 45, wrap=True),
            window_closes=minutes_to_hm(end + 120, wrap=True),
            target_calories=450,
            target_carbs=45,
            target_protein=35,
            suggestion="Prioritize high-protein recovery with moderate carbs post-workout.",
        ),
        workout_start_time=minutes_to_hm(start, wrap=True),
        workout_end_time=minutes_to_hm(end, wrap=True),
    )


# ───────────────────────── carb cycling ───────────────────────────── #
def _day_index(day_name: str) -> int:
    # unknown names land on Monday
    return DAY_LABELS.index(day_name) if day_name in DAY_LABELS else 0


async def generate_carb_cycle_plan(db: AsyncSession, user_id: str) -> CarbCyclePlan:
    user = await get_user(db, user_id)
    base = base_targets(user)

    schedules = await get_workout_schedules(db, user_id)
    workout_indexes = {_day_index(s.day_of_week) for s in schedules}

    pattern = ["high" if i in workout_indexes else "low" for i in range(7)]
    refeed_index = 6 if (user.goal if user else None) == "lose" else 5
    pattern[refeed_index] = "refeed"

    high = MacroTargets(
        calories=round_half_up(base.calories * 1.08),
        protein=base.protein,
        carbs=round_half_up(base.carbs * 1.25),
        fats=max(20, round_half_up(base.fats * 0.85)),
    )
    low = MacroTargets(
        calories=round_half_up(base.calories * 0.93),
        protein=base.protein,
        carbs=max(40, round_half_up(base.carbs * 0.7)),
        fats=round_half_up(base.fats * 1.15),
    )
    refeed = MacroTargets(
        calories=round_half_up(base.calories * 1.12),
        protein=round_half_up(base.protein * 1.05),
        carbs=round_half_up(base.carbs * 1.5),
        fats=max(15, round_half_up(base.fats * 0.7)),
    )

    plan = CarbCyclePlan(
        user_id=user_id,
        week_pattern=pattern,
        high_carb_calories=high.calories,
        low_carb_calories=low.calories,
        refeed_calories=refeed.calories,
        high_carb_macros=high,
        low_carb_macros=low,
        refeed_macros=refeed,
    )
    await set_item(db, _carb_cycle_key(user_id), plan.model_dump_json(by_alias=True))
    return plan


async def get_today_carb_cycle_targets(
    db: AsyncSession, user_id: str, day: date | None = None
) -> MacroTargets:
    raw = await get_item(db, _carb_cycle_key(user_id))
    if raw:
        try:
            plan = CarbCyclePlan.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            _LOG.warning("stored carb cycle for %s is unreadable – using base targets", user_id)
        else:
            pattern = plan.week_pattern
            mode = pattern[(day or date.today()).weekday()] if len(pattern) == 7 else "low"
            if mode == "high":
                return plan.high_carb_macros
            if mode == "refeed":
                return plan.refeed_macros
            return plan.low_carb_macros

    return base_targets(await get_user(db, user_id))
