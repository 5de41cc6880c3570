"""Pydantic request models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from nutritrack.domain.nutrition import Confidence, MealType


class AnalyzeRequest(BaseModel):
    """Photo analysis request."""

    image_base64: str = Field(min_length=1)
    day: date | None = None
    meal_type: MealType | None = None
    image_uri: str | None = None


class MealCreateRequest(BaseModel):
    """Manually entered meal."""

    name: str = Field(min_length=1)
    calories: int = Field(default=0, ge=0)
    protein: int = Field(default=0, ge=0)
    carbs: int = Field(default=0, ge=0)
    fats: int = Field(default=0, ge=0)
    fiber: int | None = Field(default=None, ge=0)
    confidence: Confidence = Confidence.MEDIUM
    serving_size: str | None = None
    notes: str | None = None
    meal_type: MealType | None = None
    image_uri: str | None = None


class MealUpdateRequest(BaseModel):
    """Partial meal edit; only fields that are sent are applied."""

    name: str | None = None
    calories: int | None = Field(default=None, ge=0)
    protein: int | None = Field(default=None, ge=0)
    carbs: int | None = Field(default=None, ge=0)
    fats: int | None = Field(default=None, ge=0)
    fiber: int | None = Field(default=None, ge=0)
    confidence: Confidence | None = None
    serving_size: str | None = None
    notes: str | None = None
    meal_type: MealType | None = None
    image_uri: str | None = None
    timestamp: str | None = None


class WaterRequest(BaseModel):
    """Water intake change in milliliters."""

    ml: int


class GoalsPayload(BaseModel):
    """Daily targets."""

    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    carbs: int = Field(ge=0)
    fats: int = Field(ge=0)
    water_ml: int | None = Field(default=None, ge=0)


class CredentialRequest(BaseModel):
    """API key submitted for storage or validation."""

    api_key: str = Field(min_length=1)


class ProfilePayload(BaseModel):
    """Profile context for weekly insights."""

    name: str | None = None
    gender: str | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    activity_level: str | None = None
    fitness_goal: str | None = None
    diet_type: str | None = None
