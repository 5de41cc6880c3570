"""Domain models for the per-day nutrition ledger."""

from dataclasses import dataclass, field
from datetime import date

from nutritrack.domain.nutrition import Confidence, MealType, NutritionTotals


@dataclass(frozen=True)
class Meal:
    """A logged meal owned by one ledger day."""

    id: str
    timestamp: str
    name: str
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fats: int = 0
    confidence: Confidence = Confidence.MEDIUM
    serving_size: str | None = None
    fiber: int | None = None
    notes: str | None = None
    meal_type: MealType | None = None
    image_uri: str | None = None


_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def format_day(day: date) -> str:
    """Format a day as ``Mon Oct 19 2026`` regardless of the process locale."""
    return (
        f"{_WEEKDAYS[day.weekday()]} {_MONTHS[day.month - 1]} "
        f"{day.day:02d} {day.year:04d}"
    )


def calculate_meal_totals(meals: list[Meal]) -> NutritionTotals:
    """Sum calories and macros over a meal list."""
    calories = protein = carbs = fats = 0
    for meal in meals:
        calories += meal.calories
        protein += meal.protein
        carbs += meal.carbs
        fats += meal.fats
    return NutritionTotals(calories=calories, protein=protein, carbs=carbs, fats=fats)


@dataclass(frozen=True)
class DailyLedgerEntry:
    """Meals and water intake for one calendar day.

    Totals are derived from ``meals`` on every access, so they always match
    the current meal list.
    """

    day: date
    meals: tuple[Meal, ...] = field(default_factory=tuple)
    water_ml: int = 0

    @property
    def totals(self) -> NutritionTotals:
        return calculate_meal_totals(list(self.meals))

    @property
    def calories(self) -> int:
        return self.totals.calories

    @property
    def protein(self) -> int:
        return self.totals.protein

    @property
    def carbs(self) -> int:
        return self.totals.carbs

    @property
    def fats(self) -> int:
        return self.totals.fats

    def find_meal(self, meal_id: str) -> Meal | None:
        """Return the meal with ``meal_id`` if present."""
        for meal in self.meals:
            if meal.id == meal_id:
                return meal
        return None


@dataclass(frozen=True)
class Goals:
    """Daily nutrition targets."""

    calories: int = 2000
    protein: int = 150
    carbs: int = 250
    fats: int = 65
    water_ml: int | None = 2500
