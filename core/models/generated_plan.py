from __future__ import annotations

from typing import Literal

from .base import CamelModel
from .diet_plan import MealType

Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


class GeneratedFood(CamelModel):
    name: str
    grams: float
    calories: float


class GeneratedMeal(CamelModel):
    meal_type: MealType
    name: str
    target_calories: int
    target_protein: int
    target_carbs: int
    target_fats: int
    time_window: str            # "HH:MM-HH:MM"
    foods: list[GeneratedFood]


class DayPlan(CamelModel):
    day: Weekday
    is_rest_day: bool
    meals: list[GeneratedMeal]


class GeneratedMealPlan(CamelModel):
    name: str
    description: str
    daily_calories: float
    protein_target: int
    carbs_target: int
    fats_target: int
    week_days: list[DayPlan]
