from __future__ import annotations
from datetime import date

from core.models.base import CamelModel


class AdherenceOut(CamelModel):
    user_id: str
    day: date
    adherence: float


class PlanSavedOut(CamelModel):
    id: str
    name: str
    is_active: bool
    start_date: int
    end_date: int
