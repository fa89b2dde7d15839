"""Parse and repair the JSON returned for each chunk.

Parsing is an ordered chain of fallible parsers followed by an infallible
fallback, so one malformed completion can never abort a run.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Tuple

from json_repair import repair_json

from ..utils.errors import VoiceNotesError
from .fields import DEFAULT_TITLE

logger = logging.getLogger(__name__)

PartialSummary = Dict[str, Any]

_BRACE_BLOCK = re.compile(r"\{[\s\S]*\}")

FALLBACK_SUMMARY = "The summary for this part of the recording could not be read."


class MalformedResponseError(VoiceNotesError):
    """A completion could not be read as a JSON object by one parser in the chain."""


def fallback_partial() -> PartialSummary:
    """Placeholder object used when every parser failed."""
    return {
        "title": DEFAULT_TITLE,
        "summary": FALLBACK_SUMMARY,
        "main_points": [],
        "action_items": [],
        "follow_up": [],
    }


def _require_object(value: Any, parser: str) -> PartialSummary:
    if not isinstance(value, dict):
        raise MalformedResponseError(f"{parser} produced {type(value).__name__}, not an object")
    return value


def parse_strict(raw: str) -> PartialSummary:
    """Plain ``json.loads``."""
    try:
        return _require_object(json.loads(raw), "json.loads")
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON: {e}") from e


def parse_repaired(raw: str) -> PartialSummary:
    """Structural repair of the whole text (trailing commas, missing brackets, quotes)."""
    try:
        repaired = repair_json(raw, return_objects=True)
    except (ValueError, RecursionError) as e:
        raise MalformedResponseError(f"JSON repair failed: {e}") from e
    return _require_object(repaired, "repair")


def parse_extracted(raw: str) -> PartialSummary:
    """Repair only the largest brace-delimited block, dropping surrounding prose."""
    match = _BRACE_BLOCK.search(raw)
    if not match:
        raise MalformedResponseError("No JSON object found in response")
    return parse_repaired(match.group(0))


PARSER_CHAIN: Tuple[Tuple[str, Callable[[str], PartialSummary]], ...] = (
    ("strict", parse_strict),
    ("repair", parse_repaired),
    ("extract", parse_extracted),
)


def parse_partial(raw: str, index: int = 0) -> PartialSummary:
    """Turn one raw completion into a partial summary. Never raises.

    Args:
        raw: Completion text
        index: Chunk index, used in log messages

    Returns:
        Parsed object, or the fallback object when every parser failed
    """
    if not raw or not raw.strip():
        logger.warning(f"Chunk {index}: empty completion, using fallback summary")
        return fallback_partial()

    errors: List[str] = []
    for name, parser in PARSER_CHAIN:
        try:
            result = parser(raw)
        except MalformedResponseError as e:
            errors.append(f"{name}: {e.message}")
            continue
        if errors:
            logger.info(f"Chunk {index}: JSON recovered by '{name}' parser")
        return result

    logger.warning(
        f"Chunk {index}: could not parse completion ({'; '.join(errors)}), using fallback summary"
    )
    return fallback_partial()
