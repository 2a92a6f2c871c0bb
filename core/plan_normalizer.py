"""
core/plan_normalizer.py
────────────────────────────────────────────────────────────────────────
Turns a persisted plan record (free-form `plan_data`) into a canonical
`DietPlan`: one meal per meal type, sorted by time window.

Accepted payload shapes, resolved once here and nowhere else:

    {"meals": [...]}                        → "meals"
    {"weekDays": [{"meals": [...]}, ...]}   → "weekDays" (one source per day)
    [...]                                   → "array"

A dict may carry both `meals` and `weekDays`; candidates are flattened
in that order and the *first* meal of each type wins.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, List, Literal, Mapping, NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from core.models.diet_plan import DietPlan, MealType, PlanFood, PlannedMeal
from core.parsing import (
    first_present,
    infer_meal_type,
    parse_time_to_minutes,
    parse_time_window,
    to_number,
)
from services.db import get_active_plan_record

_LOG = logging.getLogger(__name__)


class PayloadSource(NamedTuple):
    kind: Literal["meals", "weekDays", "array"]
    meals: list


def decode_plan_data(raw: Any) -> Any:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except ValueError:
            _LOG.warning("plan_data is not valid JSON – treating as empty")
            return {}
    return raw


def resolve_payload_sources(payload: Any) -> List[PayloadSource]:
    sources: List[PayloadSource] = []
    if isinstance(payload, Mapping):
        if isinstance(payload.get("meals"), list):
            sources.append(PayloadSource("meals", payload["meals"]))
        week_days = payload.get("weekDays")
        if isinstance(week_days, list):
            for day in week_days:
                if isinstance(day, Mapping) and isinstance(day.get("meals"), list):
                    sources.append(PayloadSource("weekDays", day["meals"]))
    elif isinstance(payload, list):
        sources.append(PayloadSource("array", payload))
    return sources


def _candidates(payload: Any) -> Iterator[Mapping[str, Any]]:
    for source in resolve_payload_sources(payload):
        for meal in source.meals:
            yield meal if isinstance(meal, Mapping) else {}


def _format_grams(grams: float) -> str:
    return f"{int(grams)}g" if float(grams).is_integer() else f"{grams}g"


def _normalize_foods(raw_foods: Any) -> List[PlanFood]:
    if not isinstance(raw_foods, list):
        return []

    foods: List[PlanFood] = []
    for food in raw_foods:
        f = food if isinstance(food, Mapping) else {}
        raw_name = first_present(f, "name", "foodName")
        name = "Food" if raw_name is None else str(raw_name)
        if not name:
            continue

        amount = f.get("amount")
        grams = f.get("grams")
        if amount is None:
            if isinstance(grams, (int, float)) and not isinstance(grams, bool):
                amount = _format_grams(grams)
            else:
                amount = "1 serving"

        foods.append(
            PlanFood(name=name, amount=str(amount), calories=max(0.0, to_number(f.get("calories"))))
        )
    return foods


def _target(meal: Mapping[str, Any], camel: str, snake: str, short: str) -> float:
    return max(0.0, to_number(first_present(meal, camel, snake, short)))


def _planned_meal(
    meal: Mapping[str, Any], meal_type: MealType, plan_id: str, index: int
) -> PlannedMeal:
    start, end = parse_time_window(meal, meal_type)
    raw_id = meal.get("id")
    raw_name = meal.get("name")
    return PlannedMeal(
        id=str(raw_id) if raw_id is not None else f"{plan_id}-{meal_type.value}-{index}",
        meal_type=meal_type,
        name=str(raw_name) if raw_name is not None else f"{meal_type.value.capitalize()} Meal",
        target_calories=_target(meal, "targetCalories", "target_calories", "calories"),
        target_protein=_target(meal, "targetProtein", "target_protein", "protein"),
        target_carbs=_target(meal, "targetCarbs", "target_carbs", "carbs"),
        target_fats=_target(meal, "targetFats", "target_fats", "fats"),
        foods=_normalize_foods(meal.get("foods")),
        time_window_start=start,
        time_window_end=end,
        priority=int(to_number(meal.get("priority"), index + 1)),
    )


def sort_by_time_window(meals: Iterable[PlannedMeal]) -> List[PlannedMeal]:
    return sorted(meals, key=lambda m: parse_time_to_minutes(m.time_window_start))


def normalize_plan_data_to_diet_plan(record: Any) -> DietPlan:
    """Pure: never raises on malformed `plan_data`."""
    payload = decode_plan_data(getattr(record, "plan_data", None))
    plan_id = str(getattr(record, "id", "") or "")

    by_type: dict[MealType, PlannedMeal] = {}
    for index, meal in enumerate(_candidates(payload)):
        inferred = infer_meal_type(first_present(meal, "mealType", "type", "name"))
        if inferred is None or inferred in by_type:
            continue
        by_type[inferred] = _planned_meal(meal, inferred, plan_id, index)

    meals = sort_by_time_window(by_type.values())
    total = sum(m.target_calories for m in meals)

    daily = total
    if isinstance(payload, Mapping):
        daily = to_number(first_present(payload, "dailyCalories", "daily_calories"), total)

    return DietPlan(
        id=plan_id,
        name=str(getattr(record, "name", "") or ""),
        daily_calories=daily,
        meals=meals,
    )


def planned_meal_to_payload(meal: PlannedMeal) -> dict[str, Any]:
    """Canonical payload form, readable again by the normalizer."""
    data = meal.model_dump(by_alias=True, mode="json")
    data["timeWindow"] = f"{meal.time_window_start}-{meal.time_window_end}"
    return data


async def get_active_diet_plan(db: AsyncSession, user_id: str) -> DietPlan | None:
    record = await get_active_plan_record(db, user_id)
    if record is None:
        return None
    return normalize_plan_data_to_diet_plan(record)
