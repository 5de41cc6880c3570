"""Nutrition domain models and analysis outcomes."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal


class Confidence(StrEnum):
    """Model confidence in a nutrition estimate."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MealType(StrEnum):
    """Meal slot a logged meal belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class NutritionTotals:
    """Summed calories and macros."""

    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fats: int = 0


@dataclass(frozen=True)
class NutritionRecord:
    """Validated nutrition estimate for a single food or dish."""

    name: str
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fats: int = 0
    confidence: Confidence = Confidence.MEDIUM
    serving_size: str | None = None
    fiber: int | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Nutrition record requires a non-empty name")


@dataclass(frozen=True)
class FoodOutcome:
    """Analysis detected food."""

    record: NutritionRecord
    kind: Literal["food"] = "food"


@dataclass(frozen=True)
class NotFoodOutcome:
    """Analysis concluded the image does not show food."""

    reason: str
    kind: Literal["not_food"] = "not_food"


@dataclass(frozen=True)
class ErrorOutcome:
    """Analysis could not complete."""

    message: str
    kind: Literal["error"] = "error"


AnalysisOutcome = FoodOutcome | NotFoodOutcome | ErrorOutcome
