from __future__ import annotations
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Goal(str, Enum):
    lose = "lose"
    gain = "gain"
    maintain = "maintain"


class UserCreate(BaseModel):
    id: str
    name: str | None = None
    calorie_target: float | None = Field(None, ge=0)
    protein_target: float | None = Field(None, ge=0)
    carbs_target: float | None = Field(None, ge=0)
    fats_target: float | None = Field(None, ge=0)
    goal: Goal = Goal.maintain
    activity_level: str | None = Field(None, examples=["sedentary", "moderate", "active", "very_active"])
    dietary_restrictions: List[str] = Field([], examples=[["vegan", "gluten-free"]])

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserCreate):
    """Same fields as input, different semantic meaning."""
    pass
