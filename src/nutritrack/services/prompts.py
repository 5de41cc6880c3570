"""Prompt templates for Gemini requests."""

import json
from collections.abc import Sequence

from nutritrack.domain.ledger import DailyLedgerEntry, format_day
from nutritrack.domain.profile import UserProfile

FOOD_ANALYSIS_PROMPT = """You are a professional nutritionist AI analyzing food images.

CRITICAL RULES:
1. ONLY analyze if the image clearly shows FOOD or BEVERAGES meant for human consumption
2. If the image is NOT food (people, animals, objects, landscapes, text, screenshots, documents, memes, artwork, selfies, etc.), return EXACTLY: {"is_food": false, "reason": "brief explanation of what was detected instead"}
3. If image is blurry, too dark, or unrecognizable, return: {"is_food": false, "reason": "Image too unclear to analyze accurately"}
4. If you cannot confidently identify the food, return: {"is_food": false, "reason": "Unable to identify food items with confidence"}

FOR VALID FOOD IMAGES, return this JSON structure:
{
  "is_food": true,
  "name": "Descriptive food name (e.g., 'Grilled Chicken Breast with Steamed Broccoli and Brown Rice')",
  "items": ["chicken breast", "broccoli", "brown rice"],
  "serving_size": "Estimated portion (e.g., '1 medium plate, approximately 350g')",
  "calories": number (total estimated kcal, whole number),
  "protein": number (grams, whole number),
  "carbs": number (grams, whole number),
  "fats": number (grams, whole number),
  "fiber": number (grams, optional, whole number),
  "confidence": "high" | "medium" | "low",
  "notes": "Brief notes about estimation (e.g., 'Portion size estimated from plate reference')"
}

ESTIMATION GUIDELINES:
- Use USDA nutrition database as primary reference
- For restaurant/homemade food, provide middle-range conservative estimates
- If multiple items visible, calculate and sum all nutritional values
- Always round to nearest whole number
- Use "low" confidence for unusual, mixed, or partially visible dishes
- Use "medium" confidence for common foods with some uncertainty
- Use "high" confidence for clearly identifiable standard portions

COMMON EDGE CASES TO HANDLE:
- Empty plates/containers -> NOT food
- Food packaging without visible food -> NOT food
- Recipes/menus/nutrition labels -> NOT food
- Pet food -> NOT food (unless clearly human food)
- Raw ingredients (valid) vs decorative items (invalid)

IMPORTANT: Return ONLY valid JSON. Do not include markdown formatting (like ```json), comments, or any conversational text. Just the raw JSON string."""

WEEKLY_ANALYSIS_PROMPT = """You are a professional nutritionist AI analyzing a user's weekly nutrition data.

INPUT DATA:
- User Profile: {profile_json}
- Weekly Log: {week_json}

TASK:
Analyze the user's nutrition progress over the last week relative to their goals.
Provide a concise, motivating, and personalized insight in 2-3 short sentences.
Focus on:
1. Calorie adherence (deficit/surplus consistency).
2. Macro trends (e.g., "Protein is consistently low").
3. Specific advice based on their goal (Lose/Gain/Maintain).

OUTPUT FORMAT:
Return ONLY the raw text response. Do not use JSON, markdown formatting, or bullet points. Keep it conversational but professional."""


def build_weekly_prompt(
    days: Sequence[DailyLedgerEntry], profile: UserProfile
) -> str:
    """Fill the weekly template with compact profile and per-day JSON."""
    week_context = [
        {
            "date": day_label(entry),
            "calories": entry.calories,
            "protein": entry.protein,
            "carbs": entry.carbs,
            "fats": entry.fats,
            "water": entry.water_ml,
        }
        for entry in days
    ]
    return WEEKLY_ANALYSIS_PROMPT.format(
        profile_json=_compact_json(profile.model_context()),
        week_json=_compact_json(week_context),
    )


def day_label(entry: DailyLedgerEntry) -> str:
    """Format a ledger day as e.g. ``Mon Oct 19 2026``."""
    return format_day(entry.day)


def _compact_json(value: object) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
