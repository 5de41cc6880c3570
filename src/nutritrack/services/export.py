"""Export of the current day and goals as a JSON document."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path

from nutritrack.domain.errors import StorageWriteError
from nutritrack.services.goals import GoalStore, goals_to_record
from nutritrack.services.ledger import NutritionLedger, as_day, entry_to_record

_logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ExportService:
    """Writes human-readable snapshots for sharing."""

    ledger: NutritionLedger
    goal_store: GoalStore
    export_dir: Path
    clock: Callable[[], datetime] = field(default=_utc_now)

    def build_document(self, day: date) -> dict[str, object]:
        """Return the snapshot for a day with the current goals."""
        resolved = as_day(day)
        entry = self.ledger.load(resolved)
        return {
            "date": resolved.isoformat(),
            "today": entry_to_record(entry),
            "goals": goals_to_record(self.goal_store.load()),
            "exportedAt": self.clock().isoformat(),
        }

    def export(self, day: date) -> Path:
        """Write the snapshot to a new file and return its path."""
        document = self.build_document(day)
        millis = int(self.clock().timestamp() * 1000)
        path = self.export_dir / f"nutritrack_{millis}.json"
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        except OSError as exc:
            _logger.exception("Export error")
            raise StorageWriteError(str(path), str(exc)) from exc
        _logger.info("Exported nutrition snapshot to %s", path)
        return path
