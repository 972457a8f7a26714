"""
Recovery of JSON payloads from model output

Model responses are untrusted text. Arrays go through a fixed ladder:
strip code fences -> parse -> drop trailing commas -> parse ->
extract the outermost [...] span -> parse -> GenerationParseError.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from exceptions import GenerationParseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r'^```json\n?|```')
_TRAILING_COMMA_RE = re.compile(r',\s*\]')


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences when the payload starts with one."""
    raw = (text or "").strip()
    if raw.startswith("```"):
        raw = _FENCE_RE.sub("", raw).strip()
    return raw


def extract_json_array(text: str) -> Optional[str]:
    """Return the span from the first '[' to the last ']', if any."""
    first = text.find("[")
    last = text.rfind("]")
    if first != -1 and last != -1 and last > first:
        return text[first:last + 1]
    return None


def _load_list(text: str) -> Optional[List[Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, list) else None


def parse_json_array(raw_text: str) -> List[Any]:
    """Parse a JSON array out of model output, repairing what can be repaired."""
    raw = strip_code_fences(raw_text) or "[]"

    parsed = _load_list(raw)
    if parsed is not None:
        return parsed

    raw = _TRAILING_COMMA_RE.sub("]", raw)
    parsed = _load_list(raw)
    if parsed is not None:
        logger.debug("Recovered JSON array after removing trailing commas")
        return parsed

    extracted = extract_json_array(raw)
    if extracted is not None:
        parsed = _load_list(extracted)
        if parsed is not None:
            logger.debug("Recovered JSON array from bracket span")
            return parsed

    raise GenerationParseError(technical_details=f"Unparseable model output: {raw[:200]!r}")


def parse_json_object(raw_text: str) -> Dict[str, Any]:
    """Parse a single JSON object (fences stripped, no further repair)."""
    raw = strip_code_fences(raw_text)
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise GenerationParseError(technical_details=str(e)) from e
    if not isinstance(value, dict):
        raise GenerationParseError(technical_details=f"Expected a JSON object, got {type(value).__name__}")
    return value
