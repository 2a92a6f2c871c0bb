from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import Field

from .base import CamelModel


class AdaptationType(str, Enum):
    timing_shift = "timing_shift"
    portion_adjustment = "portion_adjustment"
    food_swap = "food_swap"
    remove_meal_type = "remove_meal_type"


class AdaptationSuggestion(CamelModel):
    id: str
    type: AdaptationType
    title: str
    description: str
    confidence: float = Field(..., ge=0, le=1)
    evidence_count: int = Field(..., ge=0, le=7)
    # {"mealType": ..., plus "shiftMinutes" | "ratio" | "plannedFoods"}
    payload: Dict[str, Any]


class WeeklyAdaptiveAnalysisResult(CamelModel):
    window_start: datetime
    window_end: datetime
    suggestions: list[AdaptationSuggestion]
    analyzed_days: int = 7


class AdaptationFeedback(CamelModel):
    suggestion_id: str
    accepted: bool
    responded_at: int          # epoch ms
