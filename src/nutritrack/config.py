"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_GEMINI_MODELS = (
    "gemini-2.0-flash,gemini-2.0-flash-lite,gemini-2.5-pro,"
    "gemini-2.5-flash,gemini-2.5-flash-lite"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_models: str = DEFAULT_GEMINI_MODELS
    analysis_max_retries: int = 2
    request_timeout_seconds: float = 30.0
    rate_limit_backoff_seconds: float = 0.5
    storage_backend: str = "file"
    data_dir: str = ".nutritrack/data"
    credential_path: str = ".nutritrack/credential"
    export_dir: str = ".nutritrack/exports"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "app_storage"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="NUTRITRACK_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_model_list(raw: str | None) -> list[str]:
    """Parse the ordered, comma-separated model preference list."""
    if raw is None:
        return []
    models: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in models:
            models.append(value)
    return models
