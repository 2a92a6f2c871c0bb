"""
core/plan_generator.py
────────────────────────────────────────────────────────────────────────
Synthesises a 7-day plan from the user's profile and persists it.

1. Goal-adjusted macros  (lose: P×1.15, C×0.85, F≥20 · gain: C×1.2)
2. Food library filtered by dietary restrictions
3. Workout days from activity level (same pattern every week)
4. Per day: calories = max(1200, base +150 workout / −100 rest),
   four meals by fixed ratios, foods = sliding 3-item window
5. `save_generated_plan()` – deactivate old + insert new in one commit
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, List, Sequence

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from core.helpers import DAY_LABELS, round_half_up, to_epoch_ms
from core.models.diet_plan import MEAL_TYPE_ORDER, MealType
from core.models.generated_plan import DayPlan, GeneratedFood, GeneratedMeal, GeneratedMealPlan
from core.parsing import DEFAULT_WINDOWS
from services.db import MealPlan, User, get_user

_LOG = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────
#  Profile dataclass
# ──────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PlanProfile:
    calorie_target: float = 2000
    protein_target: float = 120
    carbs_target: float = 220
    fats_target: float = 70
    goal: str = "maintain"          # "lose" | "gain" | "maintain"
    activity_level: str | None = None
    dietary_restrictions: List[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User | None) -> "PlanProfile":
        if user is None:
            return cls()
        prefs = user.preferences if isinstance(user.preferences, dict) else {}
        raw = prefs.get("dietary_restrictions")
        return cls(
            calorie_target=user.calorie_target or 2000,
            protein_target=user.protein_target or 120,
            carbs_target=user.carbs_target or 220,
            fats_target=user.fats_target or 70,
            goal=user.goal or "maintain",
            activity_level=user.activity_level,
            dietary_restrictions=[str(r).lower() for r in raw] if isinstance(raw, list) else [],
        )


@dataclass(frozen=True)
class LibraryFood:
    name: str
    calories: float
    grams: float
    tags: FrozenSet[str]


FOOD_LIBRARY: Sequence[LibraryFood] = (
    LibraryFood("Oats", 190, 50, frozenset({"vegetarian", "vegan"})),
    LibraryFood("Egg whites", 90, 120, frozenset({"high-protein"})),
    LibraryFood("Chicken breast", 240, 150, frozenset({"high-protein", "gluten-free"})),
    LibraryFood("Salmon", 280, 150, frozenset({"high-protein", "gluten-free"})),
    LibraryFood("Tofu", 180, 160, frozenset({"vegetarian", "vegan", "gluten-free"})),
    LibraryFood("Brown rice", 180, 140, frozenset({"vegetarian", "vegan", "gluten-free"})),
    LibraryFood("Quinoa", 170, 120, frozenset({"vegetarian", "vegan", "gluten-free"})),
    LibraryFood("Greek yogurt", 120, 140, frozenset({"vegetarian"})),
    LibraryFood("Mixed nuts", 170, 30, frozenset({"vegetarian", "vegan", "gluten-free"})),
    LibraryFood("Leafy greens", 35, 100, frozenset({"vegetarian", "vegan", "gluten-free"})),
)

MEAL_RATIOS: Dict[MealType, float] = {
    MealType.breakfast: 0.25,
    MealType.lunch: 0.35,
    MealType.dinner: 0.30,
    MealType.snack: 0.10,
}

MEAL_NAMES: Dict[MealType, str] = {
    MealType.breakfast: "Energy Breakfast",
    MealType.lunch: "Balanced Lunch",
    MealType.dinner: "Recovery Dinner",
    MealType.snack: "Smart Snack",
}

_WORKOUT_PATTERNS = {
    "high": frozenset({"Monday", "Tuesday", "Thursday", "Friday", "Saturday"}),
    "moderate": frozenset({"Monday", "Wednesday", "Friday", "Saturday"}),
    "low": frozenset({"Tuesday", "Thursday", "Saturday"}),
}

CALORIE_FLOOR = 1200
WORKOUT_DAY_BONUS = 150
REST_DAY_PENALTY = 100
PLAN_DAYS = 7


# ──────────────────────────────────────────────────────────────────────
#  Building blocks (pure)
# ──────────────────────────────────────────────────────────────────────
def adjust_macros_for_goal(
    goal: str, protein: float, carbs: float, fats: float
) -> Dict[str, int]:
    if goal == "lose":
        return {
            "protein": round_half_up(protein * 1.15),
            "carbs": round_half_up(carbs * 0.85),
            "fats": max(20, round_half_up(fats)),
        }
    if goal == "gain":
        return {
            "protein": round_half_up(protein),
            "carbs": round_half_up(carbs * 1.2),
            "fats": round_half_up(fats),
        }
    return {
        "protein": round_half_up(protein),
        "carbs": round_half_up(carbs),
        "fats": round_half_up(fats),
    }


def workout_days_for(activity_level: str | None) -> FrozenSet[str]:
    if activity_level in ("very_active", "active"):
        return _WORKOUT_PATTERNS["high"]
    if activity_level == "moderate":
        return _WORKOUT_PATTERNS["moderate"]
    return _WORKOUT_PATTERNS["low"]


def filter_foods(restrictions: Sequence[str]) -> List[LibraryFood]:
    if not restrictions:
        return list(FOOD_LIBRARY)

    vegan = "vegan" in restrictions
    vegetarian = "vegetarian" in restrictions
    gluten_free = "gluten-free" in restrictions or "gluten_free" in restrictions

    def allowed(food: LibraryFood) -> bool:
        if vegan and "vegan" not in food.tags:
            return False
        if vegetarian and not food.tags & {"vegetarian", "vegan"}:
            return False
        if gluten_free and "gluten-free" not in food.tags:
            return False
        return True

    return [f for f in FOOD_LIBRARY if allowed(f)]


def build_day_meals(
    day_calories: float,
    protein: float,
    carbs: float,
    fats: float,
    foods: Sequence[LibraryFood],
) -> List[GeneratedMeal]:
    meals = []
    for idx, meal_type in enumerate(MEAL_TYPE_ORDER):
        ratio = MEAL_RATIOS[meal_type]
        start, end = DEFAULT_WINDOWS[meal_type]
        meals.append(GeneratedMeal(
            meal_type=meal_type,
            name=MEAL_NAMES[meal_type],
            target_calories=round_half_up(day_calories * ratio),
            target_protein=max(5, round_half_up(protein * ratio)),
            target_carbs=max(5, round_half_up(carbs * ratio)),
            target_fats=max(3, round_half_up(fats * ratio)),
            time_window=f"{start}-{end}",
            foods=[
                GeneratedFood(name=f.name, grams=f.grams, calories=f.calories)
                for f in foods[idx: idx + 3]
            ],
        ))
    return meals


def build_plan(profile: PlanProfile) -> GeneratedMealPlan:
    macros = adjust_macros_for_goal(
        profile.goal, profile.protein_target, profile.carbs_target, profile.fats_target
    )
    foods = filter_foods(profile.dietary_restrictions)
    workout_days = workout_days_for(profile.activity_level)

    week_days = []
    for day in DAY_LABELS:
        is_workout = day in workout_days
        delta = WORKOUT_DAY_BONUS if is_workout else -REST_DAY_PENALTY
        day_calories = max(CALORIE_FLOOR, profile.calorie_target + delta)
        week_days.append(DayPlan(
            day=day,
            is_rest_day=not is_workout,
            meals=build_day_meals(
                day_calories, macros["protein"], macros["carbs"], macros["fats"], foods
            ),
        ))

    return GeneratedMealPlan(
        name="Adaptive Weekly Meal Plan",
        description="Auto-generated plan aligned with your goal, schedule, and dietary preferences.",
        daily_calories=profile.calorie_target,
        protein_target=macros["protein"],
        carbs_target=macros["carbs"],
        fats_target=macros["fats"],
        week_days=week_days,
    )


# ──────────────────────────────────────────────────────────────────────
#  Store-facing entry points
# ──────────────────────────────────────────────────────────────────────
async def generate_plan_for_user(db: AsyncSession, user_id: str) -> GeneratedMealPlan:
    user = await get_user(db, user_id)
    if user is None:
        _LOG.warning("user %s not found – generating from default targets", user_id)
    return build_plan(PlanProfile.from_user(user))


def plan_payload(plan: GeneratedMealPlan) -> dict:
    week_days = [d.model_dump(by_alias=True, mode="json") for d in plan.week_days]
    return {
        "id": f"generated-plan-{uuid.uuid4().hex[:12]}",
        "dailyCalories": plan.daily_calories,
        "weekDays": week_days,
        # top-level meals mirror the first weekday only
        "meals": week_days[0]["meals"] if week_days else [],
    }


async def save_generated_plan(
    db: AsyncSession,
    plan: GeneratedMealPlan,
    user_id: str,
    now: datetime | None = None,
) -> MealPlan:
    now = now or datetime.now()
    record = MealPlan(
        user_id=user_id,
        name=plan.name,
        description=plan.description,
        start_date=to_epoch_ms(now),
        end_date=to_epoch_ms(now + timedelta(days=PLAN_DAYS)),
        plan_data=plan_payload(plan),
        is_active=True,
        is_ai_generated=True,
    )

    try:
        await db.execute(
            update(MealPlan)
            .where(MealPlan.user_id == user_id, MealPlan.is_active.is_(True))
            .values(is_active=False)
        )
        db.add(record)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    _LOG.info("saved generated plan %s for user %s", record.id, user_id)
    return record
