"""User profile used as context for weekly insights."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    """Body metrics and preferences entered during onboarding."""

    name: str | None = None
    gender: str | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    activity_level: str | None = None
    fitness_goal: str | None = None
    diet_type: str | None = None

    def model_context(self) -> dict[str, object]:
        """Return the non-identifying fields shared with the model."""
        return {
            "gender": self.gender,
            "age": self.age,
            "height": self.height_cm,
            "weight": self.weight_kg,
            "activityLevel": self.activity_level,
            "fitnessGoal": self.fitness_goal,
            "dietType": self.diet_type,
        }
