"""Response Parsing — extract and validate the analysis payload from an LLM reply.

Invariants:
    - A forced tool_use block wins; text blocks are the fallback
    - Surrounding ``` / ```json fences are stripped before JSON parsing
    - Any parse or shape failure raises MalformedResponseError (retryable)
    - Pure: reads response attributes only, never mutates them
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from dialectica.core.domain_types import AnalysisPhase
from dialectica.core.errors import MalformedResponseError
from dialectica.schemas.analysis import Analysis, parse_analysis

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove one leading ``` or ```json fence and one trailing fence."""
    text = text.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    return _FENCE_CLOSE.sub("", text, count=1).strip()


def extract_payload(response: Any, tool_name: str) -> dict:
    """Return the raw analysis object from a Messages API response."""
    blocks = getattr(response, "content", None) or []
    for block in blocks:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == tool_name:
            payload = getattr(block, "input", None)
            if not isinstance(payload, dict):
                raise MalformedResponseError("tool input is not a JSON object")
            return payload

    text = "".join(
        getattr(block, "text", "") or ""
        for block in blocks if getattr(block, "type", None) == "text"
    )
    if not text.strip():
        stop = getattr(response, "stop_reason", None)
        raise MalformedResponseError(f"response contained no analysis (stop_reason={stop})")
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"invalid JSON ({e.msg} at char {e.pos})") from e
    if not isinstance(payload, dict):
        raise MalformedResponseError("expected a JSON object")
    return payload


def parse_response(response: Any, phase: AnalysisPhase, tool_name: str) -> Analysis:
    """Extract the payload and validate it against the phase's schema."""
    payload = extract_payload(response, tool_name)
    try:
        return parse_analysis(payload, phase)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise MalformedResponseError(
            f"{e.error_count()} schema error(s), first at {loc}: {first['msg']}",
        ) from e
