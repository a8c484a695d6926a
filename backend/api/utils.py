"""
Text helpers shared by the chat endpoint and the response composer.

Functions
---------
extract_url(message: str) -> tuple[str | None, str]
    Find the first http(s) URL in a chat message and return it together with
    the message text that remains once the URL is removed.
extract_json_object(text: str) -> ParseResult
    Best-effort recovery of one JSON object from free LLM output (markdown
    fences, leading prose, trailing commentary, slightly broken JSON).
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from json_repair import repair_json

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(
    r"https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.IGNORECASE,
)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def extract_url(message: str) -> tuple[Optional[str], str]:
    """
    Split a chat message into its first URL and the remaining query.

    Parameters
    ----------
    message : str
        Raw user message.

    Returns
    -------
    tuple[str | None, str]
        ``(url, query)``; ``url`` is None when the message has no URL and
        ``query`` is the trimmed message with that URL removed.
    """
    match = URL_PATTERN.search(message or "")
    if not match:
        return None, (message or "").strip()
    url = match.group(0)
    return url, message.replace(url, "", 1).strip()


@dataclass(frozen=True)
class ParseResult:
    """Outcome of `extract_json_object`: either a value or a request to fall back."""
    value: Optional[Any] = None
    needs_fallback: bool = False

    @classmethod
    def fallback(cls) -> "ParseResult":
        return cls(value=None, needs_fallback=True)


def _first_balanced_object(text: str) -> Optional[str]:
    """Return the first ``{...}`` block with balanced braces, honouring JSON strings."""
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    # unbalanced: hand the tail to the repair step
    return text[start:]


def extract_json_object(text: Optional[str]) -> ParseResult:
    """
    Recover a JSON object from LLM free text.

    Markdown code fences are stripped, the first balanced brace block is
    located and parsed; if strict parsing fails the block is passed through
    ``json_repair``. Anything that still is not a JSON object yields
    ``ParseResult.fallback()``.
    """
    cleaned = (text or "").strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)

    block = _first_balanced_object(cleaned)
    if block is None:
        return ParseResult.fallback()

    try:
        value = json.loads(block)
    except json.JSONDecodeError:
        try:
            value = repair_json(block, return_objects=True)
        except Exception as e:
            logger.warning("Could not repair JSON block: %s", e)
            return ParseResult.fallback()

    if not isinstance(value, dict):
        return ParseResult.fallback()
    return ParseResult(value=value)
