"""
JSON extraction from model replies.

Models asked for JSON still wrap it in Markdown fences or surround it with
prose. Extraction is an ordered chain of strategies; the first one that yields
a JSON object wins. When every strategy fails a FormatError lists what was
tried.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from fitplan.core.exceptions import FormatError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


class NoCandidateError(ValueError):
    """The strategy found nothing to parse."""


def parse_direct(text: str) -> Any:
    return json.loads(text.strip())


def parse_fenced(text: str) -> Any:
    match = _FENCE_RE.search(text)
    if not match:
        raise NoCandidateError("no fenced code block")
    return json.loads(match.group(1).strip())


def parse_brace_span(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise NoCandidateError("no {...} span")
    return json.loads(text[start:end + 1])


STRATEGIES: tuple[tuple[str, Callable[[str], Any]], ...] = (
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("brace_span", parse_brace_span),
)


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Return the first JSON object found in ``text``.

    Raises:
        FormatError: If no strategy produces a JSON object.
    """
    if not text or not text.strip():
        raise FormatError("Model returned an empty response", {"attempts": []})

    attempts = []
    for name, strategy in STRATEGIES:
        try:
            value = strategy(text)
        except ValueError as e:
            attempts.append({"strategy": name, "error": str(e)})
            continue
        if isinstance(value, dict):
            if attempts:
                logger.debug(f"JSON extracted with strategy {name!r} after {len(attempts)} misses")
            return value
        attempts.append({"strategy": name, "error": f"expected an object, got {type(value).__name__}"})

    raise FormatError(
        "Model output does not contain a JSON object",
        {"attempts": attempts, "preview": text[:200]},
    )
