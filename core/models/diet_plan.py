from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import CamelModel


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"


MEAL_TYPE_ORDER: tuple[MealType, ...] = (
    MealType.breakfast,
    MealType.lunch,
    MealType.dinner,
    MealType.snack,
)


class PlanFood(CamelModel):
    name: str = "Food"
    amount: str = "1 serving"
    calories: float = 0


class PlannedMeal(CamelModel):
    id: str
    meal_type: MealType
    name: str
    target_calories: float = Field(0, ge=0)
    target_protein: float = Field(0, ge=0)
    target_carbs: float = Field(0, ge=0)
    target_fats: float = Field(0, ge=0)
    foods: list[PlanFood] = []
    time_window_start: str
    time_window_end: str
    priority: int = 1


# the public suggestion shape is the planned meal itself
SuggestedMeal = PlannedMeal


class DietPlan(CamelModel):
    id: str
    name: str
    daily_calories: float = 0
    meals: list[PlannedMeal] = []

    def meal_for(self, meal_type: MealType) -> PlannedMeal | None:
        return next((m for m in self.meals if m.meal_type == meal_type), None)
