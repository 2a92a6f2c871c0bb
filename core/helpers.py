"""
Small date / number helpers shared by the diet-plan modules.

All wall-clock values are *local* time, matching how meals are logged.
"""
from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta

DAY_LABELS = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (0.5 → 1, 2.5 → 3)."""
    return int(math.floor(value + 0.5))


def to_epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def from_epoch_ms(ms: float) -> datetime:
    return datetime.fromtimestamp(ms / 1000)


def day_range(day: date) -> tuple[int, int]:
    """Local midnight … 23:59:59.999 of `day` as epoch-ms bounds (inclusive)."""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return to_epoch_ms(start), to_epoch_ms(end)


def minute_of_day(ms: float) -> int:
    moment = from_epoch_ms(ms)
    return moment.hour * 60 + moment.minute


def minutes_to_hm(minutes: int, wrap: bool = False) -> str:
    if wrap:
        minutes %= 1440
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_name(day: date) -> str:
    return DAY_LABELS[day.weekday()]
