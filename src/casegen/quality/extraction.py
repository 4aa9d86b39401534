"""Pull a JSON object out of free-form oracle output."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

LOGGER = logging.getLogger(__name__)


def extract_json_span(text: str | None) -> str | None:
    """Return the text from the first ``{`` to the last ``}`` inclusive.

    Prose before and after the object is discarded. Returns ``None`` when the
    text has no such span.
    """

    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


def extract_json_object(text: str | None) -> Dict[str, Any] | None:
    """Extract and parse a single JSON object from ``text``.

    Returns ``None`` when no span is found, the span is not valid JSON (for
    example two top-level objects), or the parsed value is not an object.
    """

    span = extract_json_span(text)
    if span is None:
        LOGGER.debug("No JSON object found in oracle response")
        return None
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as exc:
        LOGGER.debug("Oracle response is not valid JSON: %s", exc)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


__all__ = ["extract_json_object", "extract_json_span"]
