"""File-backed credential store."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from nutritrack.services.credentials import CredentialStore

_logger = logging.getLogger(__name__)


@dataclass
class FileCredentialStore(CredentialStore):
    """Keeps the API key in a single owner-readable file.

    Encryption at rest is left to the host (disk encryption, secrets mount).
    """

    path: Path

    @classmethod
    def create(cls, path: str | Path) -> "FileCredentialStore":
        """Create a credential store for ``path``."""
        return cls(path=Path(path))

    def get(self) -> str | None:
        """Return the stored key."""
        try:
            if not self.path.exists():
                return None
            return self.path.read_text(encoding="utf-8").strip() or None
        except OSError:
            _logger.exception("Error retrieving API key")
            return None

    def set(self, value: str) -> bool:
        """Write the key with owner-only permissions."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value.strip())
        except OSError:
            _logger.exception("Error saving API key")
            return False
        return True

    def delete(self) -> bool:
        """Remove the key file."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            _logger.exception("Error deleting API key")
            return False
        return True
