from __future__ import annotations

from typing import Literal

from .base import CamelModel

Intensity = Literal["none", "light", "moderate", "heavy"]
CarbCycleDay = Literal["high", "low", "refeed"]


class MacroTargets(CamelModel):
    calories: float
    protein: float
    carbs: float
    fats: float


class DayCalorieAdjustment(CamelModel):
    base_calories: float
    adjusted_calories: float
    adjusted_protein: float
    adjusted_carbs: float
    adjusted_fats: float
    reason: str
    workout_intensity: Intensity


class PreWorkoutWindow(CamelModel):
    ideal_eat_time: str
    latest_eat_time: str
    target_calories: int
    target_carbs: int
    target_protein: int
    suggestion: str


class PostWorkoutWindow(CamelModel):
    ideal_eat_time: str
    window_closes: str
    target_calories: int
    target_carbs: int
    target_protein: int
    suggestion: str


class WorkoutMealWindow(CamelModel):
    pre_workout: PreWorkoutWindow
    post_workout: PostWorkoutWindow
    workout_start_time: str
    workout_end_time: str


class CarbCyclePlan(CamelModel):
    user_id: str
    week_pattern: list[CarbCycleDay]
    high_carb_calories: float
    low_carb_calories: float
    refeed_calories: float
    high_carb_macros: MacroTargets
    low_carb_macros: MacroTargets
    refeed_macros: MacroTargets
