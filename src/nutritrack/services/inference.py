"""Food analysis and weekly insights via remote generative models."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from pydantic import ValidationError

from nutritrack.domain.errors import InferenceTransportError
from nutritrack.domain.gemini import GeminiErrorResponse, GenerateContentResponse
from nutritrack.domain.ledger import DailyLedgerEntry
from nutritrack.domain.nutrition import AnalysisOutcome, ErrorOutcome
from nutritrack.domain.profile import UserProfile
from nutritrack.services.credentials import CredentialService, is_valid_api_key_format
from nutritrack.services.parser import EMPTY_RESPONSE_MESSAGE, parse_response
from nutritrack.services.prompts import FOOD_ANALYSIS_PROMPT, build_weekly_prompt

HTTP_TOO_MANY_REQUESTS = 429

ANALYSIS_TEMPERATURE = 0.4
ANALYSIS_MAX_OUTPUT_TOKENS = 4096
WEEKLY_TEMPERATURE = 0.7
WEEKLY_MAX_OUTPUT_TOKENS = 150

MISSING_KEY_MESSAGE = "API key not configured. Please add your key in Settings."
INVALID_KEY_MESSAGE = "Invalid API key format."
NO_CONNECTION_MESSAGE = "No internet connection. Please check your network."
WEEKLY_MISSING_KEY_MESSAGE = "Please set your API key in Settings to get AI insights."

_logger = logging.getLogger(__name__)


class Directive(StrEnum):
    """What the retry loop does after an attempt."""

    RETRY = "retry"
    NEXT_MODEL = "next_model"
    DONE = "done"


@dataclass(frozen=True)
class GenerationResponse:
    """Status code and decoded JSON body of a model call."""

    status_code: int
    body: dict[str, object]

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300  # noqa: PLR2004


@dataclass(frozen=True)
class AttemptResult:
    """Classification of a single attempt against one model."""

    directive: Directive
    outcome: AnalysisOutcome | None = None
    error_message: str | None = None
    rate_limited: bool = False
    finish_reason: str | None = None


@dataclass(frozen=True)
class CredentialCheck:
    """Result of validating a key against the remote service."""

    valid: bool
    error: str | None = None


class GenerationClient(Protocol):
    """Interface for the remote generative model API."""

    async def generate_content(
        self, *, model: str, api_key: str, payload: dict[str, object]
    ) -> GenerationResponse:
        """Run one generation request; raise InferenceTransportError if unreachable."""

    async def list_models(self, *, api_key: str) -> GenerationResponse:
        """List models available to ``api_key``."""


def classify_response(response: GenerationResponse) -> AttemptResult:
    """Decide how the retry loop proceeds after a completed HTTP exchange."""
    if not response.is_success:
        message = error_message_from(response, fallback_prefix="Status")
        status = response.status_code
        if 400 <= status < 500 and status != HTTP_TOO_MANY_REQUESTS:  # noqa: PLR2004
            return AttemptResult(Directive.NEXT_MODEL, error_message=message)
        return AttemptResult(
            Directive.RETRY,
            error_message=message,
            rate_limited=status == HTTP_TOO_MANY_REQUESTS,
        )

    envelope = _envelope(response)
    text = envelope.first_text() if envelope else None
    finish_reason = envelope.finish_reason() if envelope else None
    if not text:
        return AttemptResult(
            Directive.RETRY,
            error_message=EMPTY_RESPONSE_MESSAGE,
            finish_reason=finish_reason,
        )

    outcome = parse_response(text)
    if isinstance(outcome, ErrorOutcome):
        return AttemptResult(
            Directive.RETRY,
            error_message=outcome.message or "Parsing failed",
            finish_reason=finish_reason,
        )
    return AttemptResult(Directive.DONE, outcome=outcome, finish_reason=finish_reason)


def classify_transport_error(exc: InferenceTransportError) -> AttemptResult:
    """Transport failures are always retried."""
    message = NO_CONNECTION_MESSAGE if exc.connection_failed else str(exc)
    return AttemptResult(Directive.RETRY, error_message=message or "Network error")


def error_message_from(response: GenerationResponse, fallback_prefix: str) -> str:
    """Return the server's error message or a status-based fallback."""
    try:
        parsed = GeminiErrorResponse.model_validate(response.body)
    except ValidationError:
        parsed = None
    if parsed and parsed.error and parsed.error.message:
        return parsed.error.message
    return f"{fallback_prefix} {response.status_code}"


def build_analysis_payload(image_b64: str) -> dict[str, object]:
    """Build the generateContent body for a food photo."""
    return {
        "contents": [
            {
                "parts": [
                    {"text": FOOD_ANALYSIS_PROMPT},
                    {"inline_data": {"mime_type": "image/jpeg", "data": image_b64}},
                ]
            }
        ],
        "generationConfig": {
            "temperature": ANALYSIS_TEMPERATURE,
            "maxOutputTokens": ANALYSIS_MAX_OUTPUT_TOKENS,
        },
    }


def build_weekly_payload(prompt: str) -> dict[str, object]:
    """Build the generateContent body for a weekly summary."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": WEEKLY_TEMPERATURE,
            "maxOutputTokens": WEEKLY_MAX_OUTPUT_TOKENS,
        },
    }


@dataclass
class InferenceService:
    """Runs analyses across an ordered list of models with retries."""

    client: GenerationClient
    credentials: CredentialService
    models: list[str]
    max_retries: int = 2
    backoff_seconds: float = 0.5

    async def analyze(self, image_b64: str) -> AnalysisOutcome:
        """Analyze a base64 JPEG and return a food, not-food or error outcome."""
        api_key = self.credentials.get_api_key()
        if api_key is None:
            return ErrorOutcome(MISSING_KEY_MESSAGE)
        if not is_valid_api_key_format(api_key):
            return ErrorOutcome(INVALID_KEY_MESSAGE)

        payload = build_analysis_payload(image_b64)
        last_error = ""
        attempts = self.max_retries + 1
        for model in self.models:
            for attempt in range(attempts):
                try:
                    response = await self.client.generate_content(
                        model=model, api_key=api_key, payload=payload
                    )
                except InferenceTransportError as exc:
                    _logger.error("Analysis request to %s failed: %s", model, exc)
                    result = classify_transport_error(exc)
                else:
                    result = classify_response(response)

                if result.finish_reason and result.finish_reason != "STOP":
                    _logger.warning(
                        "Model %s finished with reason %s", model, result.finish_reason
                    )
                if result.directive is Directive.DONE and result.outcome is not None:
                    return result.outcome

                last_error = result.error_message or last_error
                _logger.warning(
                    "Model %s attempt %s/%s failed (%s): %s",
                    model,
                    attempt + 1,
                    attempts,
                    result.directive,
                    last_error,
                )
                if result.directive is Directive.NEXT_MODEL:
                    break
                if result.rate_limited and attempt + 1 < attempts:
                    await self._backoff(attempt)

        return ErrorOutcome(
            f"Analysis failed: {last_error or 'Please check your internet connection'}"
        )

    async def summarize_week(
        self, days: Sequence[DailyLedgerEntry], profile: UserProfile
    ) -> str:
        """Return a short coaching summary for a week of ledger entries."""
        api_key = self.credentials.get_api_key()
        if api_key is None:
            return WEEKLY_MISSING_KEY_MESSAGE

        payload = build_weekly_payload(build_weekly_prompt(days, profile))
        last_error = ""
        for model in self.models:
            try:
                response = await self.client.generate_content(
                    model=model, api_key=api_key, payload=payload
                )
            except InferenceTransportError as exc:
                _logger.error("Weekly summary request to %s failed: %s", model, exc)
                last_error = str(exc) or "Network Error"
                continue

            if not response.is_success:
                last_error = error_message_from(response, fallback_prefix="API Status")
                _logger.error("Weekly summary error (%s): %s", model, last_error)
                continue

            envelope = _envelope(response)
            text = envelope.first_text() if envelope else None
            if text and text.strip():
                return text.strip()
            last_error = EMPTY_RESPONSE_MESSAGE

        return (
            f"Unable to generate insight. Details: {last_error or 'Service unavailable'}"
        )

    async def validate_api_key(self, key: str) -> CredentialCheck:
        """Check a candidate key against the models listing endpoint."""
        try:
            response = await self.client.list_models(api_key=key.strip())
        except InferenceTransportError:
            _logger.warning("API key validation request failed", exc_info=True)
            return CredentialCheck(
                valid=False, error="Network error - please check your connection"
            )
        if response.is_success:
            return CredentialCheck(valid=True)
        return CredentialCheck(
            valid=False,
            error=error_message_from(response, fallback_prefix="API returned status"),
        )

    async def _backoff(self, attempt: int) -> None:
        if self.backoff_seconds <= 0:
            return
        await asyncio.sleep(self.backoff_seconds * 2**attempt)


def _envelope(response: GenerationResponse) -> GenerateContentResponse | None:
    try:
        return GenerateContentResponse.model_validate(response.body)
    except ValidationError:
        _logger.warning("Unexpected generateContent response shape")
        return None
