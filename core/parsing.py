"""
core/parsing.py
────────────────────────────────────────────────────────────────────────
Lenient readers for plan payloads and logged-meal labels.

Every reader is an ordered chain of named strategies ending in a
terminal default, so bad data always resolves to *something*:

* meal type   → exact keyword table → substring hints → default
* time window → "HH:MM-HH:MM" string → explicit start/end → per-type default
* gram amount → leading number → 100 g
"""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Mapping, Sequence

from core.models.diet_plan import MealType

# ──────────────────────────────────────────────────────────────────────
#  Meal type
# ──────────────────────────────────────────────────────────────────────
_KEYWORDS: dict[MealType, frozenset[str]] = {
    MealType.breakfast: frozenset({"breakfast", "break fast", "فطور", "فطورًا", "desayuno"}),
    MealType.lunch: frozenset({"lunch", "غداء", "almuerzo", "comida"}),
    MealType.dinner: frozenset({"dinner", "عشاء", "cena", "supper"}),
    MealType.snack: frozenset({"snack", "snacks", "سناك", "وجبة خفيفة", "merienda", "colación"}),
}

_SUBSTRING_HINTS: tuple[tuple[tuple[str, ...], MealType], ...] = (
    (("break",), MealType.breakfast),
    (("lunch",), MealType.lunch),
    (("dinner", "supper"), MealType.dinner),
    (("snack",), MealType.snack),
)


def match_keyword(text: str) -> MealType | None:
    for meal_type, words in _KEYWORDS.items():
        if text in words:
            return meal_type
    return None


def match_substring(text: str) -> MealType | None:
    for hints, meal_type in _SUBSTRING_HINTS:
        if any(h in text for h in hints):
            return meal_type
    return None


MEAL_TYPE_MATCHERS: Sequence[Callable[[str], MealType | None]] = (
    match_keyword,
    match_substring,
)


def infer_meal_type(value: Any, default: MealType | None = None) -> MealType | None:
    normalized = str(value if value is not None else "").strip().lower()
    if not normalized:
        return default
    for matcher in MEAL_TYPE_MATCHERS:
        found = matcher(normalized)
        if found is not None:
            return found
    return default


def normalize_logged_meal_type(label: Any) -> MealType:
    """Logged labels never drop out: anything unrecognised counts as a snack."""
    found = infer_meal_type(label)
    return MealType.snack if found is None else found


# ──────────────────────────────────────────────────────────────────────
#  Time windows
# ──────────────────────────────────────────────────────────────────────
DEFAULT_WINDOWS: dict[MealType, tuple[str, str]] = {
    MealType.breakfast: ("07:00", "09:30"),
    MealType.lunch: ("12:00", "14:30"),
    MealType.dinner: ("18:00", "21:00"),
    MealType.snack: ("15:00", "17:30"),
}

_WHITESPACE = re.compile(r"\s")

Window = tuple[str | None, str | None]


def window_from_dash_string(meal: Mapping[str, Any]) -> Window | None:
    raw = meal.get("timeWindow", meal.get("time_window"))
    if not isinstance(raw, str) or not raw:
        return None
    parts = _WHITESPACE.sub("", raw).split("-")
    if len(parts) != 2:
        return None
    return parts[0] or None, parts[1] or None


def window_from_bounds(meal: Mapping[str, Any]) -> Window | None:
    start = meal.get("timeWindowStart", meal.get("time_window_start"))
    end = meal.get("timeWindowEnd", meal.get("time_window_end"))
    if not isinstance(start, str) and not isinstance(end, str):
        return None
    return (
        start.strip() or None if isinstance(start, str) else None,
        end.strip() or None if isinstance(end, str) else None,
    )


TIME_WINDOW_READERS: Sequence[Callable[[Mapping[str, Any]], Window | None]] = (
    window_from_dash_string,
    window_from_bounds,
)


def parse_time_window(meal: Mapping[str, Any], meal_type: MealType) -> tuple[str, str]:
    fallback_start, fallback_end = DEFAULT_WINDOWS[meal_type]
    for reader in TIME_WINDOW_READERS:
        window = reader(meal)
        if window is not None:
            start, end = window
            return start or fallback_start, end or fallback_end
    return fallback_start, fallback_end


def parse_time_to_minutes(value: str | None) -> float:
    """Minute of day for "HH:MM"; unparsable values sort last (+inf)."""
    if not value or ":" not in value:
        return math.inf
    hours, minutes = value.split(":")[:2]
    try:
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return math.inf


# ──────────────────────────────────────────────────────────────────────
#  Amounts / numbers
# ──────────────────────────────────────────────────────────────────────
DEFAULT_GRAMS = 100.0

_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def grams_from_leading_number(amount: str) -> float | None:
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", amount))
    if not match:
        return None
    value = float(match.group(0))
    return value or None      # "0g" is as useless as no number at all


GRAM_READERS: Sequence[Callable[[str], float | None]] = (grams_from_leading_number,)


def parse_grams(amount: Any) -> float:
    text = str(amount if amount is not None else "")
    for reader in GRAM_READERS:
        grams = reader(text)
        if grams is not None:
            return grams
    return DEFAULT_GRAMS


def to_number(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None
