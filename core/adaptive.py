"""
core/adaptive.py
────────────────────────────────────────────────────────────────────────
Adaptive learning over a rolling 7-day window.

Responsibilities
----------------
1.   `collect_metrics()`              – per meal type: occurrences, skips,
     logged calories and timing deltas vs. the plan (pure).
2.   `build_suggestions()`            – four independent rules
     (timing_shift, portion_adjustment, remove_meal_type, food_swap),
     sorted by confidence (pure).
3.   `run_weekly_adaptive_analysis()` – loads plan + logs, runs 1–2 and
     stamps the "last run" key.
4.   `apply_adaptation_suggestion()`  – writes an accepted suggestion back
     into the active plan record and appends to the feedback log.

Rules are not exclusive: one meal type can yield several suggestions in
the same run (e.g. food_swap and remove_meal_type together).
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Sequence

import numpy as np
from sqlalchemy.ext.asyncio import AsyncSession

from core.helpers import (
    day_range,
    from_epoch_ms,
    minute_of_day,
    minutes_to_hm,
    round_half_up,
    to_epoch_ms,
)
from core.models.adaptation import (
    AdaptationFeedback,
    AdaptationSuggestion,
    AdaptationType,
    WeeklyAdaptiveAnalysisResult,
)
from core.models.diet_plan import MEAL_TYPE_ORDER, DietPlan, MealType, PlannedMeal
from core.parsing import (
    DEFAULT_WINDOWS,
    first_present,
    infer_meal_type,
    parse_time_to_minutes,
    to_number,
)
from core.plan_normalizer import (
    decode_plan_data,
    normalize_plan_data_to_diet_plan,
    planned_meal_to_payload,
)
from services.db import get_active_plan_record, get_logged_meals_between
from services.kv_store import get_item, set_item

_LOG = logging.getLogger(__name__)

WINDOW_DAYS = 7
MIN_EVIDENCE_DAYS = 3
SHIFT_THRESHOLD_MINUTES = 30
PORTION_UPPER = 1.15
PORTION_LOWER = 0.85
SKIP_THRESHOLD = 5
FOOD_SWAP_MAX_OCCURRENCES = 1
FOOD_SWAP_CONFIDENCE = 0.72
ADJUSTED_WINDOW_MINUTES = 150
MIN_PORTION_CALORIES = 50


def _feedback_key(user_id: str) -> str:
    return f"adaptive_feedback_{user_id}"


def _last_run_key(user_id: str) -> str:
    return f"adaptive_analysis_last_run_{user_id}"


@dataclass
class MealTypeMetrics:
    occurrences: int = 0
    skipped: int = 0
    calories_logged: List[float] = field(default_factory=list)
    shift_minutes: List[int] = field(default_factory=list)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def planned_start_minutes(meal: PlannedMeal) -> int:
    minutes = parse_time_to_minutes(meal.time_window_start)
    if math.isinf(minutes):
        minutes = parse_time_to_minutes(DEFAULT_WINDOWS[meal.meal_type][0])
    return int(minutes)


# ──────────────────────────────── metrics ─────────────────────────── #
def collect_metrics(
    plan: DietPlan, logged_by_day: Sequence[Iterable[Any]]
) -> Dict[MealType, MealTypeMetrics]:
    """
    `logged_by_day` holds one iterable of logged meals per analysed day
    (objects with `meal_type`, `consumed_at`, `total_calories`), in
    consumption order. A meal type not in the plan collects nothing.
    """
    metrics = {t: MealTypeMetrics() for t in MEAL_TYPE_ORDER}

    for day_meals in logged_by_day:
        day_meals = list(day_meals)
        for meal_type in MEAL_TYPE_ORDER:
            plan_meal = plan.meal_for(meal_type)
            if plan_meal is None:
                continue

            m = metrics[meal_type]
            hit = next(
                (lm for lm in day_meals if meal_type.value in (lm.meal_type or "").lower()),
                None,
            )
            if hit is None:
                m.skipped += 1
                continue

            m.occurrences += 1
            m.calories_logged.append(float(hit.total_calories or 0))
            m.shift_minutes.append(minute_of_day(hit.consumed_at) - planned_start_minutes(plan_meal))

    return metrics


# ──────────────────────────────── rules ───────────────────────────── #
def build_suggestions(
    plan: DietPlan, metrics: Mapping[MealType, MealTypeMetrics], run_day: date
) -> List[AdaptationSuggestion]:
    suggestions: List[AdaptationSuggestion] = []
    tag = run_day.isoformat()

    for meal_type in MEAL_TYPE_ORDER:
        plan_meal = plan.meal_for(meal_type)
        m = metrics.get(meal_type)
        if plan_meal is None or m is None:
            continue
        t = meal_type.value

        if len(m.shift_minutes) >= MIN_EVIDENCE_DAYS:
            avg_shift = float(np.mean(m.shift_minutes))
            if abs(avg_shift) >= SHIFT_THRESHOLD_MINUTES:
                suggestions.append(AdaptationSuggestion(
                    id=f"timing-{t}-{tag}",
                    type=AdaptationType.timing_shift,
                    title=f"Shift {t} timing",
                    description=(
                        f"You log {t} about {round_half_up(abs(avg_shift))} minutes "
                        f"{'later' if avg_shift > 0 else 'earlier'} than planned."
                    ),
                    confidence=_clamp01(len(m.shift_minutes) / WINDOW_DAYS),
                    evidence_count=len(m.shift_minutes),
                    payload={"mealType": t, "shiftMinutes": round_half_up(avg_shift)},
                ))

        if len(m.calories_logged) >= MIN_EVIDENCE_DAYS:
            avg_logged = float(np.mean(m.calories_logged))
            ratio = avg_logged / max(plan_meal.target_calories, 1)
            if ratio > PORTION_UPPER or ratio < PORTION_LOWER:
                suggestions.append(AdaptationSuggestion(
                    id=f"portion-{t}-{tag}",
                    type=AdaptationType.portion_adjustment,
                    title=f"Adjust {t} portion",
                    description=(
                        f"Your {t} intake is consistently "
                        f"{'above' if ratio > 1 else 'below'} target."
                    ),
                    confidence=_clamp01(len(m.calories_logged) / WINDOW_DAYS),
                    evidence_count=len(m.calories_logged),
                    payload={"mealType": t, "ratio": ratio},
                ))

        if m.skipped > SKIP_THRESHOLD:
            suggestions.append(AdaptationSuggestion(
                id=f"remove-meal-type-{t}-{tag}",
                type=AdaptationType.remove_meal_type,
                title=f"Make {t} optional",
                description=f"You skipped {t} on {m.skipped} out of {WINDOW_DAYS} days.",
                confidence=0.8 if m.skipped >= 6 else 0.7,
                evidence_count=m.skipped,
                payload={"mealType": t},
            ))

        if plan_meal.foods and m.occurrences <= FOOD_SWAP_MAX_OCCURRENCES:
            suggestions.append(AdaptationSuggestion(
                id=f"food-swap-{t}-{tag}",
                type=AdaptationType.food_swap,
                title=f"Swap foods for {t}",
                description=(
                    f"Planned foods for {t} appear underused. "
                    "Consider alternatives you log more often."
                ),
                confidence=FOOD_SWAP_CONFIDENCE,
                evidence_count=max(1, WINDOW_DAYS - m.occurrences),
                payload={"mealType": t, "plannedFoods": [f.name for f in plan_meal.foods]},
            ))

    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


# ─────────────────────────────── analysis ─────────────────────────── #
async def run_weekly_adaptive_analysis(
    db: AsyncSession, user_id: str, now: datetime | None = None
) -> WeeklyAdaptiveAnalysisResult:
    window_end = now or datetime.now()
    window_start = window_end - timedelta(days=WINDOW_DAYS - 1)
    suggestions: List[AdaptationSuggestion] = []

    record = await get_active_plan_record(db, user_id)
    if record is not None:
        plan = normalize_plan_data_to_diet_plan(record)

        # today first, then backwards; one read covers all seven days
        days = [window_end.date() - timedelta(days=i) for i in range(WINDOW_DAYS)]
        range_start, _ = day_range(days[-1])
        _, range_end = day_range(days[0])
        logged = await get_logged_meals_between(db, user_id, range_start, range_end)

        buckets: Dict[date, list] = {d: [] for d in days}
        for meal in logged:
            buckets.setdefault(from_epoch_ms(meal.consumed_at).date(), []).append(meal)

        metrics = collect_metrics(plan, [buckets[d] for d in days])
        suggestions = build_suggestions(plan, metrics, window_end.date())
        _LOG.debug(
            "adaptive analysis user=%s logged=%d suggestions=%d",
            user_id, len(logged), len(suggestions),
        )

    await set_item(db, _last_run_key(user_id), str(to_epoch_ms(window_end)))

    return WeeklyAdaptiveAnalysisResult(
        window_start=window_start,
        window_end=window_end,
        suggestions=suggestions,
        analyzed_days=WINDOW_DAYS,
    )


# ─────────────────────────────── applying ─────────────────────────── #
def _payload_meal_type(payload: Mapping[str, Any]) -> MealType | None:
    try:
        return MealType(str(payload.get("mealType", "")))
    except ValueError:
        return None


def adapt_meal(meal: PlannedMeal, suggestion: AdaptationSuggestion) -> PlannedMeal:
    payload = suggestion.payload

    if suggestion.type == AdaptationType.timing_shift:
        shift = round_half_up(to_number(payload.get("shiftMinutes"), 0))
        shifted = max(0, planned_start_minutes(meal) + shift)
        return meal.model_copy(update={
            "time_window_start": minutes_to_hm(shifted),
            "time_window_end": minutes_to_hm(shifted + ADJUSTED_WINDOW_MINUTES),
        })

    if suggestion.type == AdaptationType.portion_adjustment:
        ratio = to_number(payload.get("ratio"), 1)
        return meal.model_copy(update={
            "target_calories": max(MIN_PORTION_CALORIES, round_half_up(meal.target_calories * ratio)),
        })

    if suggestion.type == AdaptationType.remove_meal_type:
        return meal.model_copy(update={"name": f"{meal.name} (optional)"})

    # food_swap: nothing structural to change
    return meal


def _merge_into_plan_data(
    current: Any, adjusted: List[PlannedMeal], meal_type: MealType | None
) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(current) if isinstance(current, Mapping) else {}
    adjusted_payload = [planned_meal_to_payload(m) for m in adjusted]
    merged["meals"] = adjusted_payload

    updated = next(
        (p for m, p in zip(adjusted, adjusted_payload) if m.meal_type == meal_type), None
    )
    week_days = merged.get("weekDays")
    if not isinstance(week_days, list):
        return merged

    new_days = []
    for day in week_days:
        if not isinstance(day, Mapping):
            new_days.append(day)
            continue
        day_copy = dict(day)
        meals = day.get("meals")
        if not isinstance(meals, list):
            day_copy["meals"] = adjusted_payload
        elif updated is not None:
            day_copy["meals"] = [
                updated
                if isinstance(raw, Mapping)
                and infer_meal_type(first_present(raw, "mealType", "type", "name")) == meal_type
                else raw
                for raw in meals
            ]
        new_days.append(day_copy)
    merged["weekDays"] = new_days
    return merged


async def apply_adaptation_suggestion(
    db: AsyncSession,
    suggestion: AdaptationSuggestion,
    user_id: str,
    now: datetime | None = None,
) -> None:
    record = await get_active_plan_record(db, user_id)
    if record is None:
        # plan was deactivated after the analysis ran
        _LOG.info("no active plan for %s – suggestion %s ignored", user_id, suggestion.id)
        return

    plan = normalize_plan_data_to_diet_plan(record)
    meal_type = _payload_meal_type(suggestion.payload)
    adjusted = [
        adapt_meal(meal, suggestion) if meal.meal_type == meal_type else meal
        for meal in plan.meals
    ]

    try:
        record.plan_data = _merge_into_plan_data(
            decode_plan_data(record.plan_data), adjusted, meal_type
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    _LOG.info("applied %s (%s) to plan %s", suggestion.id, suggestion.type.value, record.id)

    await _append_feedback(db, user_id, {
        "suggestionId": suggestion.id,
        "accepted": True,
        "respondedAt": to_epoch_ms(now or datetime.now()),
    })


async def _append_feedback(db: AsyncSession, user_id: str, entry: Dict[str, Any]) -> None:
    """Push onto the stored list as-is; entries are only filtered when read."""
    key = _feedback_key(user_id)
    raw = await get_item(db, key)

    entries: Any = []
    if raw:
        try:
            entries = json.loads(raw)
        except ValueError:
            entries = None
    if not isinstance(entries, list):
        # leave an unreadable log in place rather than overwrite it
        _LOG.warning("feedback log for %s is not a JSON list – %s not recorded", user_id, entry["suggestionId"])
        return

    entries.append(entry)
    await set_item(db, key, json.dumps(entries))


async def get_adaptation_feedback(
    db: AsyncSession, user_id: str
) -> List[AdaptationFeedback]:
    raw = await get_item(db, _feedback_key(user_id))
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except ValueError:
        _LOG.warning("feedback log for %s is not valid JSON – ignoring it", user_id)
        return []
    if not isinstance(parsed, list):
        return []

    return [
        AdaptationFeedback(
            suggestion_id=item["suggestionId"],
            accepted=item["accepted"],
            responded_at=int(item["respondedAt"]),
        )
        for item in parsed
        if isinstance(item, dict)
        and isinstance(item.get("suggestionId"), str)
        and isinstance(item.get("accepted"), bool)
        and isinstance(item.get("respondedAt"), (int, float))
        and not isinstance(item.get("respondedAt"), bool)
    ]
