"""Normalization of decoded model output into nutrition records."""

import math
import re
from collections.abc import Mapping

from nutritrack.domain.nutrition import (
    AnalysisOutcome,
    Confidence,
    ErrorOutcome,
    FoodOutcome,
    NotFoodOutcome,
    NutritionRecord,
)

DEFAULT_NOT_FOOD_REASON = "This image does not appear to contain food"
INVALID_NUTRITION_MESSAGE = "Invalid nutrition data in response"
UNEXPECTED_FORMAT_MESSAGE = "Unexpected response format from AI"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def handle_parsed(value: object) -> AnalysisOutcome:
    """Turn a decoded JSON value into an analysis outcome."""
    if not isinstance(value, Mapping):
        return ErrorOutcome(UNEXPECTED_FORMAT_MESSAGE)

    if value.get("is_food") is False:
        reason = value.get("reason")
        return NotFoodOutcome(
            reason=reason if isinstance(reason, str) else DEFAULT_NOT_FOOD_REASON
        )

    if value.get("is_food") is True or value.get("name"):
        record = normalize_nutrition(value)
        if record is None:
            return ErrorOutcome(INVALID_NUTRITION_MESSAGE)
        return FoodOutcome(record)

    return ErrorOutcome(UNEXPECTED_FORMAT_MESSAGE)


def normalize_nutrition(value: object) -> NutritionRecord | None:
    """Coerce a mapping into a nutrition record, or None without a usable name."""
    if not isinstance(value, Mapping):
        return None
    name = coerce_name(value.get("name"))
    if name is None:
        return None
    return NutritionRecord(
        name=name,
        serving_size=coerce_text(value.get("serving_size")),
        calories=coerce_int(value.get("calories")),
        protein=coerce_int(value.get("protein")),
        carbs=coerce_int(value.get("carbs")),
        fats=coerce_int(value.get("fats")),
        fiber=coerce_optional_int(value.get("fiber")),
        confidence=coerce_confidence(value.get("confidence")),
        notes=coerce_text(value.get("notes")),
    )


def coerce_name(value: object) -> str | None:
    """Return trimmed non-empty text, otherwise None."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def coerce_text(value: object) -> str | None:
    """Pass text through; drop anything else."""
    return value if isinstance(value, str) else None


def coerce_confidence(value: object) -> Confidence:
    """Return the matching confidence level, defaulting to medium."""
    if isinstance(value, str):
        try:
            return Confidence(value)
        except ValueError:
            return Confidence.MEDIUM
    return Confidence.MEDIUM


def coerce_int(value: object, default: int = 0) -> int:
    """Coerce a number or numeric-looking text to a non-negative integer.

    Numbers are rounded half-up. Text keeps only digits, dots and minus signs
    before parsing, so ``"420 kcal"`` becomes 420. Anything that cannot be
    read as a finite number yields ``default``.
    """
    number = _to_number(value)
    if number is None:
        return default
    return max(0, math.floor(number + 0.5))


def coerce_optional_int(value: object) -> int | None:
    """Like ``coerce_int`` but unreadable values become None."""
    number = _to_number(value)
    if number is None:
        return None
    return max(0, math.floor(number + 0.5))


def _to_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None
