from __future__ import annotations

from datetime import datetime

from .base import CamelModel
from .diet_plan import MealType


class MealPrepItem(CamelModel):
    food_name: str
    total_grams: int
    meal_types: list[MealType]
    days_used: list[str]
    prep_notes: str


class MealPrepPlan(CamelModel):
    week_start: datetime
    week_end: datetime
    items: list[MealPrepItem]
    estimated_prep_time_minutes: int
    total_meals_prepped: int
