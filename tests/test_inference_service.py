"""Tests for the inference service retry and fallback behavior."""

import asyncio
from datetime import date

import pytest

from nutritrack.domain.errors import InferenceTransportError
from nutritrack.domain.ledger import DailyLedgerEntry, Meal
from nutritrack.domain.nutrition import ErrorOutcome, FoodOutcome, NotFoodOutcome
from nutritrack.domain.profile import UserProfile
from nutritrack.services import inference as inference_module
from nutritrack.services.inference import (
    Directive,
    GenerationResponse,
    classify_response,
    classify_transport_error,
)
from tests.conftest import (
    FakeGenerationClient,
    build_inference,
    error_response,
    text_response,
)

FOOD_JSON = '{"is_food": true, "name": "Pasta", "calories": 600, "protein": 20}'


def test_analyze_without_key_makes_no_request() -> None:
    client = FakeGenerationClient()
    service = build_inference(client, api_key=None)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == ErrorOutcome(
        "API key not configured. Please add your key in Settings."
    )
    assert client.calls == []


def test_analyze_with_malformed_key_makes_no_request() -> None:
    client = FakeGenerationClient()
    service = build_inference(client, api_key="sk-not-a-gemini-key-0000000000000")

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == ErrorOutcome("Invalid API key format.")
    assert client.calls == []


def test_analyze_falls_back_to_next_model_after_server_errors() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [error_response(500)] * 3,
            "model-b": [text_response(FOOD_JSON)],
        }
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert isinstance(outcome, FoodOutcome)
    assert outcome.record.name == "Pasta"
    assert client.models_called() == ["model-a", "model-a", "model-a", "model-b"]


def test_client_error_skips_remaining_attempts_for_model() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [error_response(403, "API key not valid")],
            "model-b": [text_response(FOOD_JSON)],
        }
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert isinstance(outcome, FoodOutcome)
    assert client.models_called() == ["model-a", "model-b"]


def test_rate_limit_is_retried_on_same_model() -> None:
    client = FakeGenerationClient(
        script={"model-a": [error_response(429), text_response(FOOD_JSON)]}
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert isinstance(outcome, FoodOutcome)
    assert client.models_called() == ["model-a", "model-a"]


def test_rate_limit_backs_off_exponentially(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(inference_module.asyncio, "sleep", fake_sleep)
    client = FakeGenerationClient(
        script={
            "model-a": [error_response(429)] * 3,
            "model-b": [text_response(FOOD_JSON)],
        }
    )
    service = build_inference(client)
    service.backoff_seconds = 0.5

    asyncio.run(service.analyze("aW1n"))

    assert delays == [0.5, 1.0]


def test_transport_errors_are_retried() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [
                InferenceTransportError("boom", connection_failed=True),
                InferenceTransportError("Request timed out"),
                text_response(FOOD_JSON),
            ]
        }
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert isinstance(outcome, FoodOutcome)
    assert client.models_called() == ["model-a"] * 3


def test_empty_and_unparseable_text_are_retried() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [
                text_response(None),
                text_response("I cannot process this image."),
                text_response('{"is_food": false, "reason": "a blurry photo"}'),
            ]
        }
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == NotFoodOutcome(reason="a blurry photo")
    assert client.models_called() == ["model-a"] * 3


def test_not_food_stops_model_iteration() -> None:
    client = FakeGenerationClient(
        script={"model-a": [text_response('{"is_food": false, "reason": "a cat"}')]}
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == NotFoodOutcome(reason="a cat")
    assert client.models_called() == ["model-a"]


def test_exhaustion_reports_last_error() -> None:
    client = FakeGenerationClient(
        script={"model-c": [error_response(503, "The model is overloaded.")] * 3}
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == ErrorOutcome("Analysis failed: The model is overloaded.")
    assert len(client.calls) == 9


def test_exhaustion_with_connection_failures() -> None:
    failures = [InferenceTransportError("down", connection_failed=True)] * 3
    client = FakeGenerationClient(
        script={"model-a": list(failures), "model-b": list(failures), "model-c": list(failures)}
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert outcome == ErrorOutcome(
        "Analysis failed: No internet connection. Please check your network."
    )


def test_analysis_request_payload() -> None:
    client = FakeGenerationClient(script={"model-a": [text_response(FOOD_JSON)]})
    service = build_inference(client)

    asyncio.run(service.analyze("aW1nZQ=="))

    _, payload = client.calls[0]
    parts = payload["contents"][0]["parts"]
    assert "nutritionist" in parts[0]["text"]
    assert parts[1] == {"inline_data": {"mime_type": "image/jpeg", "data": "aW1nZQ=="}}
    assert payload["generationConfig"] == {"temperature": 0.4, "maxOutputTokens": 4096}


@pytest.mark.parametrize(
    ("status_code", "directive"),
    [
        (400, Directive.NEXT_MODEL),
        (401, Directive.NEXT_MODEL),
        (404, Directive.NEXT_MODEL),
        (429, Directive.RETRY),
        (500, Directive.RETRY),
        (503, Directive.RETRY),
    ],
)
def test_classify_error_statuses(status_code: int, directive: Directive) -> None:
    result = classify_response(error_response(status_code))

    assert result.directive is directive
    assert result.error_message == f"Status {status_code}"
    assert result.rate_limited == (status_code == 429)


def test_classify_success_outcomes() -> None:
    done = classify_response(text_response(FOOD_JSON))
    empty = classify_response(GenerationResponse(status_code=200, body={}))
    garbage = classify_response(text_response("nope", finish_reason="MAX_TOKENS"))

    assert done.directive is Directive.DONE
    assert isinstance(done.outcome, FoodOutcome)
    assert empty.directive is Directive.RETRY
    assert empty.error_message == "Empty response from AI"
    assert garbage.directive is Directive.RETRY
    assert garbage.finish_reason == "MAX_TOKENS"


def test_classify_malformed_envelope_is_retried() -> None:
    result = classify_response(
        GenerationResponse(status_code=200, body={"candidates": "oops"})
    )

    assert result.directive is Directive.RETRY


def test_classify_transport_error_messages() -> None:
    offline = classify_transport_error(InferenceTransportError("x", connection_failed=True))
    timeout = classify_transport_error(InferenceTransportError("Request timed out"))

    assert offline.directive is Directive.RETRY
    assert offline.error_message == "No internet connection. Please check your network."
    assert timeout.error_message == "Request timed out"


def _week() -> list[DailyLedgerEntry]:
    meal = Meal(
        id="m1",
        timestamp="2026-10-19T08:00:00+00:00",
        name="Oats",
        calories=350,
        protein=12,
        carbs=60,
        fats=7,
    )
    return [
        DailyLedgerEntry(day=date(2026, 10, 18)),
        DailyLedgerEntry(day=date(2026, 10, 19), meals=(meal,), water_ml=750),
    ]


def test_summarize_week_uses_next_model_after_failure() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [error_response(400, "Bad request")],
            "model-b": [text_response("  Protein is on track this week.  ")],
        }
    )
    service = build_inference(client)
    profile = UserProfile(name="Sam", gender="female", age=31, fitness_goal="lose")

    summary = asyncio.run(service.summarize_week(_week(), profile))

    assert summary == "Protein is on track this week."
    assert client.models_called() == ["model-a", "model-b"]
    _, payload = client.calls[1]
    prompt = payload["contents"][0]["parts"][0]["text"]
    assert '"date":"Mon Oct 19 2026","calories":350' in prompt
    assert '"water":750' in prompt
    assert '"fitnessGoal":"lose"' in prompt
    assert "Sam" not in prompt
    assert payload["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 150}


def test_summarize_week_without_key() -> None:
    client = FakeGenerationClient()
    service = build_inference(client, api_key=None)

    summary = asyncio.run(service.summarize_week(_week(), UserProfile()))

    assert summary == "Please set your API key in Settings to get AI insights."
    assert client.calls == []


def test_summarize_week_reports_last_error() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [InferenceTransportError("offline")],
            "model-b": [error_response(500)],
            "model-c": [error_response(502)],
        }
    )
    service = build_inference(client)

    summary = asyncio.run(service.summarize_week(_week(), UserProfile()))

    assert summary == "Unable to generate insight. Details: API Status 502"
    assert client.models_called() == ["model-a", "model-b", "model-c"]


def test_validate_api_key_success() -> None:
    client = FakeGenerationClient()
    service = build_inference(client)

    check = asyncio.run(service.validate_api_key("  AIza-candidate  "))

    assert check.valid is True
    assert client.keys == ["AIza-candidate"]


def test_validate_api_key_reports_server_message() -> None:
    client = FakeGenerationClient(
        list_models_result=error_response(400, "API key not valid.")
    )
    service = build_inference(client)

    check = asyncio.run(service.validate_api_key("AIza-bad"))

    assert check.valid is False
    assert check.error == "API key not valid."


def test_validate_api_key_status_fallback_and_network_error() -> None:
    service = build_inference(FakeGenerationClient(list_models_result=error_response(403)))
    offline = build_inference(
        FakeGenerationClient(list_models_result=InferenceTransportError("down"))
    )

    check = asyncio.run(service.validate_api_key("AIza-bad"))
    offline_check = asyncio.run(offline.validate_api_key("AIza-bad"))

    assert check.error == "API returned status 403"
    assert offline_check.error == "Network error - please check your connection"


def test_analyze_survives_oversized_numbers_in_reply() -> None:
    client = FakeGenerationClient(
        script={
            "model-a": [
                text_response('{"name": "Tea", "calories": 1' + "0" * 5000 + "}"),
                text_response('{"name": "Tea", "calories": 1' + "0" * 400 + "}"),
            ]
        }
    )
    service = build_inference(client)

    outcome = asyncio.run(service.analyze("aW1n"))

    assert isinstance(outcome, FoodOutcome)
    assert outcome.record.calories == 0
    assert client.models_called() == ["model-a", "model-a"]
