"""File-backed key-value store."""

import hashlib
from dataclasses import dataclass
from pathlib import Path

from nutritrack.services.storage import KeyValueStore

_SUFFIX = ".json"


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Stores each key as a UTF-8 text file inside a directory."""

    directory: Path

    @classmethod
    def create(cls, directory: str | Path) -> "FileKeyValueStore":
        """Create a store rooted at ``directory``."""
        return cls(directory=Path(directory))

    def get(self, key: str) -> str | None:
        """Return the stored text for a key."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Write a key atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        """Remove a key if it exists."""
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove all stored keys."""
        if not self.directory.exists():
            return
        for path in self.directory.glob(f"*{_SUFFIX}"):
            path.unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.directory / f"{digest}{_SUFFIX}"
