"""User-facing messages for not-food analysis results."""

from dataclasses import dataclass
from enum import StrEnum


class NotFoodCategory(StrEnum):
    """Approximate category of a not-food reason."""

    UNCLEAR = "unclear"
    PERSON = "person"
    DOCUMENT = "document"
    ANIMAL = "animal"
    EMPTY_CONTAINER = "empty_container"
    GENERIC = "generic"


@dataclass(frozen=True)
class NotFoodMessage:
    """Category and display text for a not-food reason."""

    category: NotFoodCategory
    text: str


_MESSAGES: dict[NotFoodCategory, str] = {
    NotFoodCategory.UNCLEAR: (
        "The image is a bit unclear. Try taking a clearer photo with better lighting."
    ),
    NotFoodCategory.PERSON: (
        "Nice photo, but I need to see the food! "
        "Try pointing the camera at your meal."
    ),
    NotFoodCategory.DOCUMENT: (
        "I see text/documents. I need an actual photo of food to analyze its nutrition."
    ),
    NotFoodCategory.ANIMAL: (
        "Cute! But I can only analyze human food. Snap a pic of what you're eating!"
    ),
    NotFoodCategory.EMPTY_CONTAINER: (
        "Looks like an empty plate! Add some food and I'll analyze it for you."
    ),
    NotFoodCategory.GENERIC: (
        "Hmm, that doesn't look like food! Try taking a photo of your meal."
    ),
}

# Checked in order; first match wins.
_KEYWORDS: tuple[tuple[NotFoodCategory, tuple[str, ...]], ...] = (
    (NotFoodCategory.UNCLEAR, ("blur", "unclear")),
    (NotFoodCategory.PERSON, ("person", "selfie")),
    (NotFoodCategory.DOCUMENT, ("text", "document", "menu")),
    (NotFoodCategory.ANIMAL, ("animal", "pet")),
    (NotFoodCategory.EMPTY_CONTAINER, ("empty", "plate")),
)


def categorize_not_food(reason: str | None) -> NotFoodCategory:
    """Map a free-text reason to a category by keyword."""
    if not reason:
        return NotFoodCategory.GENERIC
    lowered = reason.lower()
    for category, keywords in _KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return NotFoodCategory.GENERIC


def not_food_message(reason: str | None) -> NotFoodMessage:
    """Return the display message for a not-food reason."""
    category = categorize_not_food(reason)
    return NotFoodMessage(category=category, text=_MESSAGES[category])
