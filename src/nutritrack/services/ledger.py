"""Per-day nutrition ledger persisted in a key-value store."""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

from nutritrack.domain.errors import StorageWriteError
from nutritrack.domain.ledger import DailyLedgerEntry, Meal, format_day
from nutritrack.domain.nutrition import MealType, NutritionRecord
from nutritrack.services.normalizer import (
    coerce_confidence,
    coerce_int,
    coerce_name,
    coerce_optional_int,
    coerce_text,
)
from nutritrack.services.storage import KeyValueStore

DAY_KEY_PREFIX = "nutrition_"
WEEK_LENGTH_DAYS = 7

EDITABLE_MEAL_FIELDS = frozenset(
    {
        "name",
        "serving_size",
        "calories",
        "protein",
        "carbs",
        "fats",
        "fiber",
        "confidence",
        "notes",
        "meal_type",
        "image_uri",
        "timestamp",
    }
)

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def day_key(day: date) -> str:
    """Return the storage key for a calendar day."""
    return f"{DAY_KEY_PREFIX}{format_day(as_day(day))}"


def as_day(value: date) -> date:
    """Reduce a datetime to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def new_meal_id() -> str:
    """Generate a unique meal id."""
    return str(uuid4())


@dataclass
class NutritionLedger:
    """Loads and mutates daily ledger entries.

    Every mutation returns a new entry and writes the whole entry back; the
    entry passed in is left untouched so callers can keep it if the write
    fails.
    """

    store: KeyValueStore
    clock: Callable[[], datetime] = field(default=_utc_now)

    def load(self, day: date) -> DailyLedgerEntry:
        """Return the entry for a day, or an empty one when nothing is stored."""
        resolved = as_day(day)
        key = day_key(resolved)
        try:
            stored = self.store.get(key)
            if stored is None:
                return DailyLedgerEntry(day=resolved)
            return entry_from_record(resolved, json.loads(stored), now=self.clock())
        except Exception:
            _logger.exception("Error loading daily nutrition for %s", key)
            return DailyLedgerEntry(day=resolved)

    def load_week(self, end_day: date) -> list[DailyLedgerEntry]:
        """Return seven entries ending at ``end_day``, oldest first."""
        end = as_day(end_day)
        return [
            self.load(end - timedelta(days=offset))
            for offset in range(WEEK_LENGTH_DAYS - 1, -1, -1)
        ]

    def add_meal(
        self,
        entry: DailyLedgerEntry,
        record: NutritionRecord,
        meal_type: MealType | None = None,
        image_uri: str | None = None,
    ) -> tuple[DailyLedgerEntry, Meal]:
        """Append a new meal built from a nutrition record and persist."""
        meal = Meal(
            id=new_meal_id(),
            timestamp=self.clock().isoformat(),
            name=record.name,
            calories=record.calories,
            protein=record.protein,
            carbs=record.carbs,
            fats=record.fats,
            confidence=record.confidence,
            serving_size=record.serving_size,
            fiber=record.fiber,
            notes=record.notes,
            meal_type=meal_type,
            image_uri=image_uri,
        )
        updated = replace(entry, meals=(*entry.meals, meal))
        self._persist(updated)
        return updated, meal

    def update_meal(
        self, entry: DailyLedgerEntry, meal_id: str, changes: Mapping[str, object]
    ) -> DailyLedgerEntry:
        """Replace the given fields of a meal and persist."""
        unknown = set(changes) - EDITABLE_MEAL_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        if entry.find_meal(meal_id) is None:
            return entry
        coerced = _coerce_changes(changes)
        meals = tuple(
            replace(meal, **coerced) if meal.id == meal_id else meal
            for meal in entry.meals
        )
        updated = replace(entry, meals=meals)
        self._persist(updated)
        return updated

    def delete_meal(self, entry: DailyLedgerEntry, meal_id: str) -> DailyLedgerEntry:
        """Remove a meal and persist."""
        if entry.find_meal(meal_id) is None:
            return entry
        updated = replace(
            entry, meals=tuple(meal for meal in entry.meals if meal.id != meal_id)
        )
        self._persist(updated)
        return updated

    def add_water(self, entry: DailyLedgerEntry, milliliters: int) -> DailyLedgerEntry:
        """Add to the water counter; negative amounts undo earlier additions."""
        updated = replace(entry, water_ml=entry.water_ml + milliliters)
        self._persist(updated)
        return updated

    def reset(self) -> None:
        """Erase all stored application data."""
        try:
            self.store.clear()
        except Exception as exc:
            _logger.exception("Error clearing stored data")
            raise StorageWriteError("*", str(exc)) from exc

    def _persist(self, entry: DailyLedgerEntry) -> None:
        key = day_key(entry.day)
        try:
            self.store.set(key, json.dumps(entry_to_record(entry)))
        except Exception as exc:
            _logger.exception("Error saving daily nutrition for %s", key)
            raise StorageWriteError(key, str(exc)) from exc


def entry_to_record(entry: DailyLedgerEntry) -> dict[str, object]:
    """Serialize an entry with its derived totals."""
    totals = entry.totals
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fats": totals.fats,
        "meals": [meal_to_record(meal) for meal in entry.meals],
        "waterIntake": entry.water_ml,
    }


def meal_to_record(meal: Meal) -> dict[str, object]:
    """Serialize a meal, omitting unset optional fields."""
    record: dict[str, object] = {
        "id": meal.id,
        "timestamp": meal.timestamp,
        "name": meal.name,
        "calories": meal.calories,
        "protein": meal.protein,
        "carbs": meal.carbs,
        "fats": meal.fats,
        "confidence": str(meal.confidence),
    }
    optional = {
        "serving_size": meal.serving_size,
        "fiber": meal.fiber,
        "notes": meal.notes,
        "mealType": str(meal.meal_type) if meal.meal_type else None,
        "imageUri": meal.image_uri,
    }
    record.update({key: value for key, value in optional.items() if value is not None})
    return record


def entry_from_record(day: date, raw: object, now: datetime) -> DailyLedgerEntry:
    """Rebuild an entry from stored data, defaulting malformed fields.

    Stored totals are ignored; they are derived from the meals again.
    """
    if not isinstance(raw, Mapping):
        return DailyLedgerEntry(day=day)
    meals_raw = raw.get("meals")
    meals = (
        tuple(
            meal_from_record(item, index, now) for index, item in enumerate(meals_raw)
        )
        if isinstance(meals_raw, list)
        else ()
    )
    return DailyLedgerEntry(
        day=day, meals=meals, water_ml=coerce_int(raw.get("waterIntake"))
    )


def meal_from_record(raw: object, index: int, now: datetime) -> Meal:
    """Rebuild a meal from stored data; never drops the entry."""
    placeholder_name = f"Meal {index + 1}"
    if not isinstance(raw, Mapping):
        return Meal(id=new_meal_id(), timestamp=now.isoformat(), name=placeholder_name)

    timestamp = raw.get("timestamp")
    if not isinstance(timestamp, str) or not timestamp.strip():
        timestamp = now.isoformat()
    meal_id = raw.get("id")
    if not isinstance(meal_id, str) or not meal_id.strip():
        meal_id = f"{timestamp}-{index}-{uuid4().hex[:6]}"

    return Meal(
        id=meal_id,
        timestamp=timestamp,
        name=coerce_name(raw.get("name")) or placeholder_name,
        calories=coerce_int(raw.get("calories")),
        protein=coerce_int(raw.get("protein")),
        carbs=coerce_int(raw.get("carbs")),
        fats=coerce_int(raw.get("fats")),
        confidence=coerce_confidence(raw.get("confidence")),
        serving_size=coerce_text(raw.get("serving_size")),
        fiber=coerce_optional_int(raw.get("fiber")),
        notes=coerce_text(raw.get("notes")),
        meal_type=_coerce_meal_type(raw.get("mealType")),
        image_uri=coerce_text(raw.get("imageUri")),
    )


def _coerce_meal_type(value: object) -> MealType | None:
    if not isinstance(value, str):
        return None
    try:
        return MealType(value)
    except ValueError:
        return None


def _coerce_changes(changes: Mapping[str, object]) -> dict[str, object]:  # noqa: PLR0912
    coerced: dict[str, object] = {}
    for name, value in changes.items():
        if name == "name":
            cleaned = coerce_name(value)
            if cleaned is None:
                raise ValueError("Meal name cannot be empty")
            coerced[name] = cleaned
        elif name in {"calories", "protein", "carbs", "fats"}:
            if value is None:
                raise ValueError(f"Meal {name} cannot be empty")
            coerced[name] = coerce_int(value)
        elif name == "fiber":
            coerced[name] = None if value is None else coerce_optional_int(value)
        elif name == "confidence":
            coerced[name] = coerce_confidence(value)
        elif name == "meal_type":
            coerced[name] = None if value is None else MealType(str(value))
        elif name == "timestamp":
            if isinstance(value, datetime):
                coerced[name] = value.isoformat()
            elif isinstance(value, str) and value.strip():
                coerced[name] = value
            else:
                raise ValueError("Meal timestamp must be a datetime or ISO string")
        else:
            coerced[name] = coerce_text(value)
    return coerced
