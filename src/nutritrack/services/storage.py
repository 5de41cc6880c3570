"""Key-value persistence interface."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Text key-value store scoped to the application.

    Implementations raise on I/O failure; callers decide how to degrade.
    """

    def get(self, key: str) -> str | None:
        """Return the stored text for ``key`` or None when missing."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    def clear(self) -> None:
        """Remove every stored key."""
