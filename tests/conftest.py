"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from nutritrack.config import Settings
from nutritrack.containers import AppContainer
from nutritrack.domain.errors import InferenceTransportError
from nutritrack.services.credentials import CredentialService, CredentialStore
from nutritrack.services.export import ExportService
from nutritrack.services.goals import GoalStore, OnboardingFlag
from nutritrack.services.inference import (
    GenerationClient,
    GenerationResponse,
    InferenceService,
)
from nutritrack.services.ledger import NutritionLedger
from nutritrack.services.storage import KeyValueStore
from nutritrack.services.tracker import TrackerService

VALID_API_KEY = "AIza" + "x" * 35
FIXED_NOW = datetime(2026, 10, 19, 12, 30, tzinfo=UTC)
MODELS = ["model-a", "model-b", "model-c"]


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    data: dict[str, str] = field(default_factory=dict)
    fail_reads: bool = False
    fail_writes: bool = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("read failed")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.data[key] = value

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.data.pop(key, None)

    def clear(self) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.data.clear()


@dataclass
class InMemoryCredentialStore(CredentialStore):
    """In-memory credential store for tests."""

    value: str | None = None

    def get(self) -> str | None:
        return self.value

    def set(self, value: str) -> bool:
        self.value = value
        return True

    def delete(self) -> bool:
        self.value = None
        return True


def text_response(text: str | None, finish_reason: str = "STOP") -> GenerationResponse:
    """Build a successful generateContent response carrying ``text``."""
    parts = [] if text is None else [{"text": text}]
    return GenerationResponse(
        status_code=200,
        body={
            "candidates": [
                {"content": {"parts": parts}, "finishReason": finish_reason}
            ]
        },
    )


def error_response(status_code: int, message: str | None = None) -> GenerationResponse:
    """Build a non-success response with an optional error message."""
    body: dict[str, object] = {}
    if message is not None:
        body = {"error": {"code": status_code, "message": message}}
    return GenerationResponse(status_code=status_code, body=body)


@dataclass
class FakeGenerationClient(GenerationClient):
    """Scripted generation client.

    Each model pops responses from its queue; an exhausted or missing queue
    answers with HTTP 500.
    """

    script: dict[str, list[GenerationResponse | InferenceTransportError]] = field(
        default_factory=dict
    )
    list_models_result: GenerationResponse | InferenceTransportError = field(
        default_factory=lambda: GenerationResponse(status_code=200, body={})
    )
    calls: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    keys: list[str] = field(default_factory=list)

    async def generate_content(
        self, *, model: str, api_key: str, payload: dict[str, object]
    ) -> GenerationResponse:
        self.calls.append((model, payload))
        self.keys.append(api_key)
        queue = self.script.get(model, [])
        result = queue.pop(0) if queue else error_response(500)
        if isinstance(result, InferenceTransportError):
            raise result
        return result

    async def list_models(self, *, api_key: str) -> GenerationResponse:
        self.keys.append(api_key)
        if isinstance(self.list_models_result, InferenceTransportError):
            raise self.list_models_result
        return self.list_models_result

    def models_called(self) -> list[str]:
        return [model for model, _ in self.calls]


def build_inference(
    client: FakeGenerationClient, api_key: str | None = VALID_API_KEY
) -> InferenceService:
    return InferenceService(
        client=client,
        credentials=CredentialService(InMemoryCredentialStore(api_key)),
        models=list(MODELS),
        max_retries=2,
        backoff_seconds=0,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        credential_path=str(tmp_path / "credential"),
        export_dir=str(tmp_path / "exports"),
        rate_limit_backoff_seconds=0,
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def ledger(store: InMemoryKeyValueStore) -> NutritionLedger:
    return NutritionLedger(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryKeyValueStore,
    generation_client: FakeGenerationClient,
    tmp_path: Path,
) -> AppContainer:
    credential_service = CredentialService(InMemoryCredentialStore(VALID_API_KEY))
    inference_service = InferenceService(
        client=generation_client,
        credentials=credential_service,
        models=list(MODELS),
        max_retries=2,
        backoff_seconds=0,
    )
    ledger = NutritionLedger(store, clock=lambda: FIXED_NOW)
    goal_store = GoalStore(store)
    export_service = ExportService(
        ledger=ledger,
        goal_store=goal_store,
        export_dir=tmp_path / "exports",
        clock=lambda: FIXED_NOW,
    )
    tracker_service = TrackerService(
        inference=inference_service, ledger=ledger, clock=lambda: FIXED_NOW
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        credential_service=credential_service,
        inference_service=inference_service,
        ledger=ledger,
        goal_store=goal_store,
        onboarding=OnboardingFlag(store),
        export_service=export_service,
        tracker_service=tracker_service,
        close_resources=close_resources,
    )
