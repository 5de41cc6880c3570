"""Inference credential handling."""

from dataclasses import dataclass
from typing import Protocol

API_KEY_PREFIX = "AIza"
API_KEY_MIN_LENGTH = 30


class CredentialStore(Protocol):
    """Storage for a single API credential.

    Protection at rest is up to the implementation; the file store only
    restricts permissions to the owner.
    """

    def get(self) -> str | None:
        """Return the stored credential, if any."""

    def set(self, value: str) -> bool:
        """Store the credential and report success."""

    def delete(self) -> bool:
        """Remove the credential and report success."""


def is_valid_api_key_format(key: str) -> bool:
    """Return True when the key has the expected prefix and length."""
    cleaned = key.strip()
    return cleaned.startswith(API_KEY_PREFIX) and len(cleaned) > API_KEY_MIN_LENGTH


@dataclass
class CredentialService:
    """Service for reading and updating the inference credential."""

    store: CredentialStore

    def get_api_key(self) -> str | None:
        """Return the stored API key, or None when unset or blank."""
        value = self.store.get()
        if value is None or not value.strip():
            return None
        return value.strip()

    def save_api_key(self, key: str) -> bool:
        """Persist a trimmed API key."""
        return self.store.set(key.strip())

    def delete_api_key(self) -> bool:
        """Remove the stored API key."""
        return self.store.delete()

    def is_configured(self) -> bool:
        """Return True when a well-formed key is stored."""
        key = self.get_api_key()
        return key is not None and is_valid_api_key_format(key)
