"""Orchestrates photo analysis and meal logging."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from nutritrack.domain.ledger import DailyLedgerEntry, Meal
from nutritrack.domain.nutrition import (
    AnalysisOutcome,
    ErrorOutcome,
    MealType,
    NotFoodOutcome,
)
from nutritrack.domain.profile import UserProfile
from nutritrack.services.inference import InferenceService
from nutritrack.services.ledger import NutritionLedger
from nutritrack.services.messages import not_food_message

_logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def suggest_meal_type(hour: int) -> MealType:
    """Pick a meal slot from the local hour."""
    if 5 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 15:  # noqa: PLR2004
        return MealType.LUNCH
    if 17 <= hour < 22:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK


@dataclass(frozen=True)
class AnalysisLogResult:
    """Outcome of analyzing a photo and, for food, the logged meal."""

    outcome: AnalysisOutcome
    entry: DailyLedgerEntry | None = None
    meal: Meal | None = None
    message: str | None = None
    stale: bool = False


@dataclass
class TrackerService:
    """Applies analysis outcomes to the ledger.

    Each analysis takes a generation number. A result that comes back after
    ``cancel()`` or a newer analysis is returned as stale and not logged.
    """

    inference: InferenceService
    ledger: NutritionLedger
    clock: Callable[[], datetime] = field(default=_local_now)
    _generation: int = field(default=0, init=False, repr=False)

    def today(self) -> date:
        """Return the local calendar day."""
        return self.clock().date()

    def cancel(self) -> None:
        """Invalidate any analysis currently in flight."""
        self._generation += 1

    async def analyze_and_log(
        self,
        image_b64: str,
        day: date | None = None,
        meal_type: MealType | None = None,
        image_uri: str | None = None,
    ) -> AnalysisLogResult:
        """Analyze a photo and log it when food is detected."""
        self._generation += 1
        generation = self._generation
        outcome = await self.inference.analyze(image_b64)
        if generation != self._generation:
            _logger.info("Discarding stale analysis result (%s)", outcome.kind)
            return AnalysisLogResult(outcome=outcome, stale=True)

        if isinstance(outcome, NotFoodOutcome):
            return AnalysisLogResult(
                outcome=outcome, message=not_food_message(outcome.reason).text
            )
        if isinstance(outcome, ErrorOutcome):
            return AnalysisLogResult(outcome=outcome, message=outcome.message)

        entry = self.ledger.load(day or self.today())
        entry, meal = self.ledger.add_meal(
            entry,
            outcome.record,
            meal_type=meal_type or suggest_meal_type(self.clock().hour),
            image_uri=image_uri,
        )
        _logger.info("Logged meal %s (%s kcal)", meal.name, meal.calories)
        return AnalysisLogResult(outcome=outcome, entry=entry, meal=meal)

    async def weekly_insight(self, end_day: date, profile: UserProfile) -> str:
        """Summarize the week ending at ``end_day``."""
        days = self.ledger.load_week(end_day)
        return await self.inference.summarize_week(days, profile)
