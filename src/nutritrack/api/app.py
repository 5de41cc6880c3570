"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutritrack.api.models import (
    AnalyzeRequest,
    CredentialRequest,
    GoalsPayload,
    MealCreateRequest,
    MealUpdateRequest,
    ProfilePayload,
    WaterRequest,
)
from nutritrack.app_logging import configure_logging
from nutritrack.containers import AppContainer
from nutritrack.domain.errors import StorageWriteError
from nutritrack.domain.ledger import DailyLedgerEntry, Goals
from nutritrack.domain.nutrition import (
    AnalysisOutcome,
    ErrorOutcome,
    FoodOutcome,
    NutritionRecord,
)
from nutritrack.domain.profile import UserProfile
from nutritrack.services.goals import goals_to_record
from nutritrack.services.ledger import entry_to_record, meal_to_record

HTTP_UNPROCESSABLE = 422


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(StorageWriteError)
    async def storage_write_error(
        request: Request, exc: StorageWriteError
    ) -> JSONResponse:
        logger.error("Write failed for %s %s: %s", request.method, request.url, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analyze")
    async def analyze(body: AnalyzeRequest, request: Request) -> dict[str, object]:
        """Analyze a food photo and log it when food is detected."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.tracker_service.analyze_and_log(
            body.image_base64,
            day=body.day,
            meal_type=body.meal_type,
            image_uri=body.image_uri,
        )
        payload: dict[str, object] = {
            "outcome": _outcome_json(result.outcome),
            "stale": result.stale,
            "message": result.message,
        }
        if result.entry is not None:
            payload["day"] = _entry_json(result.entry)
        if result.meal is not None:
            payload["meal"] = meal_to_record(result.meal)
        return payload

    @app.post("/analyze/cancel")
    async def cancel_analysis(request: Request) -> dict[str, str]:
        """Discard the result of any analysis still in flight."""
        state_container: AppContainer = request.app.state.container
        state_container.tracker_service.cancel()
        return {"status": "ok"}

    @app.get("/days/{day}")
    async def get_day(day: date, request: Request) -> dict[str, object]:
        """Return the ledger entry for a day."""
        state_container: AppContainer = request.app.state.container
        return _entry_json(state_container.ledger.load(day))

    @app.post("/days/{day}/meals", status_code=status.HTTP_201_CREATED)
    async def add_meal(
        day: date, body: MealCreateRequest, request: Request
    ) -> dict[str, object]:
        """Log a manually entered meal."""
        state_container: AppContainer = request.app.state.container
        try:
            record = NutritionRecord(
                name=body.name.strip(),
                calories=body.calories,
                protein=body.protein,
                carbs=body.carbs,
                fats=body.fats,
                confidence=body.confidence,
                serving_size=body.serving_size,
                fiber=body.fiber,
                notes=body.notes,
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=HTTP_UNPROCESSABLE, detail=str(exc)
            ) from exc
        ledger = state_container.ledger
        entry, meal = ledger.add_meal(
            ledger.load(day),
            record,
            meal_type=body.meal_type,
            image_uri=body.image_uri,
        )
        return {"day": _entry_json(entry), "meal": meal_to_record(meal)}

    @app.patch("/days/{day}/meals/{meal_id}")
    async def update_meal(
        day: date, meal_id: str, body: MealUpdateRequest, request: Request
    ) -> dict[str, object]:
        """Edit fields of a logged meal."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger
        entry = ledger.load(day)
        if entry.find_meal(meal_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        try:
            updated = ledger.update_meal(
                entry, meal_id, body.model_dump(exclude_unset=True)
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=HTTP_UNPROCESSABLE, detail=str(exc)
            ) from exc
        return _entry_json(updated)

    @app.delete("/days/{day}/meals/{meal_id}")
    async def delete_meal(day: date, meal_id: str, request: Request) -> dict[str, object]:
        """Remove a logged meal."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger
        return _entry_json(ledger.delete_meal(ledger.load(day), meal_id))

    @app.post("/days/{day}/water")
    async def add_water(
        day: date, body: WaterRequest, request: Request
    ) -> dict[str, object]:
        """Add (or undo) water intake."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger
        return _entry_json(ledger.add_water(ledger.load(day), body.ml))

    @app.get("/weeks/{end_day}")
    async def get_week(end_day: date, request: Request) -> dict[str, object]:
        """Return seven days ending at ``end_day``, oldest first."""
        state_container: AppContainer = request.app.state.container
        days = state_container.ledger.load_week(end_day)
        return {"days": [_entry_json(entry) for entry in days]}

    @app.post("/weeks/{end_day}/insight")
    async def weekly_insight(
        end_day: date, body: ProfilePayload, request: Request
    ) -> dict[str, str]:
        """Generate a short coaching summary for the week."""
        state_container: AppContainer = request.app.state.container
        insight = await state_container.tracker_service.weekly_insight(
            end_day, UserProfile(**body.model_dump())
        )
        return {"insight": insight}

    @app.get("/goals")
    async def get_goals(request: Request) -> dict[str, object]:
        """Return the current goals."""
        state_container: AppContainer = request.app.state.container
        return goals_to_record(state_container.goal_store.load())

    @app.put("/goals")
    async def put_goals(body: GoalsPayload, request: Request) -> dict[str, object]:
        """Replace the goals."""
        state_container: AppContainer = request.app.state.container
        saved = state_container.goal_store.save(Goals(**body.model_dump()))
        return goals_to_record(saved)

    @app.put("/credential")
    async def put_credential(
        body: CredentialRequest, request: Request
    ) -> dict[str, bool]:
        """Store the inference API key."""
        state_container: AppContainer = request.app.state.container
        if not state_container.credential_service.save_api_key(body.api_key):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to save API key",
            )
        return {"configured": state_container.credential_service.is_configured()}

    @app.delete("/credential")
    async def delete_credential(request: Request) -> dict[str, bool]:
        """Remove the inference API key."""
        state_container: AppContainer = request.app.state.container
        return {"deleted": state_container.credential_service.delete_api_key()}

    @app.post("/credential/validate")
    async def validate_credential(
        body: CredentialRequest, request: Request
    ) -> dict[str, object]:
        """Check an API key against the remote service."""
        state_container: AppContainer = request.app.state.container
        check = await state_container.inference_service.validate_api_key(body.api_key)
        return {"valid": check.valid, "error": check.error}

    @app.post("/export")
    async def export(request: Request, day: date | None = None) -> dict[str, str]:
        """Write a snapshot of a day and the goals to a file."""
        state_container: AppContainer = request.app.state.container
        target = day or state_container.tracker_service.today()
        path = state_container.export_service.export(target)
        return {"path": str(path)}

    @app.post("/reset")
    async def reset(request: Request) -> dict[str, str]:
        """Erase all stored data."""
        state_container: AppContainer = request.app.state.container
        state_container.ledger.reset()
        return {"status": "ok"}

    @app.get("/onboarding")
    async def onboarding_status(request: Request) -> dict[str, bool]:
        """Return whether onboarding has been completed."""
        state_container: AppContainer = request.app.state.container
        return {"complete": state_container.onboarding.is_complete()}

    @app.post("/onboarding")
    async def complete_onboarding(request: Request) -> dict[str, bool]:
        """Mark onboarding as completed."""
        state_container: AppContainer = request.app.state.container
        state_container.onboarding.mark_complete()
        return {"complete": True}

    return app


def _entry_json(entry: DailyLedgerEntry) -> dict[str, object]:
    payload = entry_to_record(entry)
    payload["date"] = entry.day.isoformat()
    return payload


def _outcome_json(outcome: AnalysisOutcome) -> dict[str, object]:
    if isinstance(outcome, FoodOutcome):
        record = outcome.record
        return {
            "type": outcome.kind,
            "data": {
                "name": record.name,
                "serving_size": record.serving_size,
                "calories": record.calories,
                "protein": record.protein,
                "carbs": record.carbs,
                "fats": record.fats,
                "fiber": record.fiber,
                "confidence": str(record.confidence),
                "notes": record.notes,
            },
        }
    if isinstance(outcome, ErrorOutcome):
        return {"type": outcome.kind, "message": outcome.message}
    return {"type": outcome.kind, "reason": outcome.reason}
