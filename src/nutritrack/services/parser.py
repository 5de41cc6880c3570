"""Parsing of free-form model output into analysis outcomes."""

import json
import logging
import re

from nutritrack.domain.nutrition import AnalysisOutcome, ErrorOutcome
from nutritrack.services.normalizer import handle_parsed

EMPTY_RESPONSE_MESSAGE = "Empty response from AI"
UNPARSEABLE_MESSAGE = "Could not parse AI response as JSON"

_CODE_FENCE = re.compile(r"```[A-Za-z0-9_+-]*")
_UNDECODED = object()

_logger = logging.getLogger(__name__)


def parse_response(raw_text: object) -> AnalysisOutcome:
    """Extract a JSON object from model text and normalize it.

    Code fences are stripped first and the whole text is decoded. When that
    fails, the span from the first ``{`` to the last ``}`` is decoded instead.
    Nested braces are not balanced, so a span that still is not valid JSON is
    reported as unparseable.
    """
    if not isinstance(raw_text, str) or not raw_text:
        return ErrorOutcome(EMPTY_RESPONSE_MESSAGE)

    clean_text = strip_code_fences(raw_text)

    decoded = _decode(clean_text)
    if decoded is _UNDECODED:
        candidate = extract_brace_span(clean_text)
        if candidate is not None:
            decoded = _decode(candidate)

    if decoded is _UNDECODED:
        _logger.warning("Failed to parse model response: %.200s", clean_text)
        return ErrorOutcome(UNPARSEABLE_MESSAGE)
    return handle_parsed(decoded)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences, with or without a language tag."""
    return _CODE_FENCE.sub("", text).strip()


def _decode(text: str) -> object:
    # Oversized integers raise ValueError and deep nesting RecursionError.
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        _logger.warning("JSON decode failed: %.200s", exc)
        return _UNDECODED


def extract_brace_span(text: str) -> str | None:
    """Return the text between the first '{' and the last '}', inclusive."""
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last <= first:
        return None
    return text[first : last + 1]
