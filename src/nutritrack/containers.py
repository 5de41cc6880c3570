"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from nutritrack.adapters.file_credential_store import FileCredentialStore
from nutritrack.adapters.file_key_value_store import FileKeyValueStore
from nutritrack.adapters.gemini_client import HttpxGeminiClient
from nutritrack.adapters.supabase_key_value_store import SupabaseKeyValueStore
from nutritrack.config import Settings, parse_model_list
from nutritrack.services.credentials import CredentialService
from nutritrack.services.export import ExportService
from nutritrack.services.goals import GoalStore, OnboardingFlag
from nutritrack.services.inference import InferenceService
from nutritrack.services.ledger import NutritionLedger
from nutritrack.services.storage import KeyValueStore
from nutritrack.services.tracker import TrackerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    credential_service: CredentialService
    inference_service: InferenceService
    ledger: NutritionLedger
    goal_store: GoalStore
    onboarding: OnboardingFlag
    export_service: ExportService
    tracker_service: TrackerService
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> KeyValueStore:
    """Create the key-value store selected by ``storage_backend``."""
    backend = settings.storage_backend.strip().lower()
    if backend == "file":
        return FileKeyValueStore.create(settings.data_dir)
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires supabase_url and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseKeyValueStore(client=client, table=settings.supabase_table)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = build_store(resolved_settings)
    credential_service = CredentialService(
        FileCredentialStore.create(resolved_settings.credential_path)
    )
    gemini_client = HttpxGeminiClient.create(
        base_url=resolved_settings.gemini_base_url,
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    inference_service = InferenceService(
        client=gemini_client,
        credentials=credential_service,
        models=parse_model_list(resolved_settings.gemini_models),
        max_retries=resolved_settings.analysis_max_retries,
        backoff_seconds=resolved_settings.rate_limit_backoff_seconds,
    )
    ledger = NutritionLedger(store)
    goal_store = GoalStore(store)
    export_service = ExportService(
        ledger=ledger,
        goal_store=goal_store,
        export_dir=Path(resolved_settings.export_dir),
    )
    tracker_service = TrackerService(inference=inference_service, ledger=ledger)

    async def close_resources() -> None:
        await gemini_client.close()

    return AppContainer(
        settings=resolved_settings,
        credential_service=credential_service,
        inference_service=inference_service,
        ledger=ledger,
        goal_store=goal_store,
        onboarding=OnboardingFlag(store),
        export_service=export_service,
        tracker_service=tracker_service,
        close_resources=close_resources,
    )
