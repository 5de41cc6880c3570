"""Goal and onboarding persistence."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from nutritrack.domain.errors import StorageWriteError
from nutritrack.domain.ledger import Goals
from nutritrack.services.normalizer import coerce_int, coerce_optional_int
from nutritrack.services.storage import KeyValueStore

GOALS_KEY = "nutrition_goals"
ONBOARDING_KEY = "onboarding_complete"

_logger = logging.getLogger(__name__)


@dataclass
class GoalStore:
    """Singleton goals record stored as JSON."""

    store: KeyValueStore

    def load(self) -> Goals:
        """Return stored goals merged over the defaults."""
        try:
            stored = self.store.get(GOALS_KEY)
            raw = json.loads(stored) if stored is not None else None
            return goals_from_record(raw)
        except Exception:
            _logger.exception("Error loading goals")
            return Goals()

    def save(self, goals: Goals) -> Goals:
        """Overwrite the stored goals."""
        try:
            self.store.set(GOALS_KEY, json.dumps(goals_to_record(goals)))
        except Exception as exc:
            _logger.exception("Error saving goals")
            raise StorageWriteError(GOALS_KEY, str(exc)) from exc
        return goals


@dataclass
class OnboardingFlag:
    """Tracks whether first-run onboarding has finished."""

    store: KeyValueStore

    def is_complete(self) -> bool:
        """Return True once onboarding was marked complete."""
        try:
            return self.store.get(ONBOARDING_KEY) == "true"
        except Exception:
            _logger.exception("Error reading onboarding flag")
            return False

    def mark_complete(self) -> None:
        """Record that onboarding finished."""
        try:
            self.store.set(ONBOARDING_KEY, "true")
        except Exception as exc:
            _logger.exception("Error saving onboarding flag")
            raise StorageWriteError(ONBOARDING_KEY, str(exc)) from exc


def goals_to_record(goals: Goals) -> dict[str, object]:
    """Serialize goals."""
    record: dict[str, object] = {
        "calories": goals.calories,
        "protein": goals.protein,
        "carbs": goals.carbs,
        "fats": goals.fats,
    }
    if goals.water_ml is not None:
        record["waterGoal"] = goals.water_ml
    return record


def goals_from_record(raw: object) -> Goals:
    """Rebuild goals, keeping defaults for missing or malformed fields."""
    defaults = Goals()
    if not isinstance(raw, Mapping):
        return defaults
    water = coerce_optional_int(raw["waterGoal"]) if "waterGoal" in raw else None
    return Goals(
        calories=coerce_int(raw.get("calories"), default=defaults.calories),
        protein=coerce_int(raw.get("protein"), default=defaults.protein),
        carbs=coerce_int(raw.get("carbs"), default=defaults.carbs),
        fats=coerce_int(raw.get("fats"), default=defaults.fats),
        water_ml=water if water is not None else defaults.water_ml,
    )
