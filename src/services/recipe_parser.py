from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from src.app.domain.models import DEFAULT_DIFFICULTY, UNKNOWN_DIFFICULTY, Difficulty
from src.services.persist_models import RecipeRecord

logger = logging.getLogger(__name__)

# Greedy: from the first "{" to the last "}".
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
LEADING_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")
PLAIN_NUMBER_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)$")
_DURATION_UNIT = r"(hours?|hrs?|h|minutes?|mins?|m)"
DURATION_PART_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*" + _DURATION_UNIT + r"\b", re.IGNORECASE)
DURATION_RANGE_PATTERN = re.compile(
    r"^(\d+(?:\.\d+)?)\s*(?:-|\u2013|to)\s*(\d+(?:\.\d+)?)\s*" + _DURATION_UNIT + r"?\.?$",
    re.IGNORECASE,
)
DURATION_FILLER_PATTERN = re.compile(r"(?:\s|,|\.|~|\band\b|\babout\b|\bapprox(?:imately)?\b)+", re.IGNORECASE)

DRAFT_TITLE_MAX_CHARS = 60
DRAFT_RAW_OUTPUT_MAX_CHARS = 2000
DRAFT_TITLE_SUFFIX = " (AI draft)"
DRAFT_FALLBACK_TITLE = "AI Recipe Draft"
DRAFT_DESCRIPTION = (
    "Auto-generated draft. The AI output could not be parsed as structured JSON. "
    "Raw output is included in instructions."
)

_DIFFICULTIES = {item.value for item in Difficulty}


@dataclass
class ParseResult:
    record: RecipeRecord
    degraded: bool


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _clean_lines(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    lines: List[str] = []
    for entry in value:
        if isinstance(entry, dict):
            # {"quantity": "2 cups", "name": "flour"} -> "2 cups flour"
            text = " ".join(part for part in (_clean_str(item) for item in entry.values()) if part)
        else:
            text = _clean_str(entry)
        if text:
            lines.append(text)
    return lines


def _finite_int(number: float) -> Optional[int]:
    if isinstance(number, int):
        return number if number >= 0 else None
    if not math.isfinite(number):
        return None
    rounded = int(round(number))
    return rounded if rounded >= 0 else None


def _duration_from_text(text: str) -> Optional[float]:
    """Minutes from "25", "1 hour 30 min" or "1-2 hours" (ranges keep the lower bound)."""
    plain = PLAIN_NUMBER_PATTERN.match(text)
    if plain:
        return float(plain.group(1))

    ranged = DURATION_RANGE_PATTERN.match(text)
    if ranged:
        return float(ranged.group(1)) * _unit_factor(ranged.group(3))

    parts = DURATION_PART_PATTERN.findall(text)
    leftover = DURATION_PART_PATTERN.sub(" ", text)
    if not parts or DURATION_FILLER_PATTERN.sub("", leftover):
        return None
    return sum(float(amount) * _unit_factor(unit) for amount, unit in parts)


def _unit_factor(unit: Optional[str]) -> int:
    return 60 if unit and unit.lower().startswith("h") else 1


def _to_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return _finite_int(value)
    if isinstance(value, str):
        minutes = _duration_from_text(value.strip())
        return _finite_int(minutes) if minutes is not None else None
    return None


def _to_servings(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        servings = _finite_int(value)
    elif isinstance(value, str):
        # "4", "4-6", "serves 4"
        match = LEADING_NUMBER_PATTERN.search(value)
        servings = _finite_int(float(match.group(0))) if match else None
    else:
        servings = None
    return servings if servings else None


def normalize_difficulty(value: Any) -> str:
    """Lower-case known difficulties; anything else becomes the default."""
    if isinstance(value, str) and value.strip().lower() in _DIFFICULTIES:
        return value.strip().lower()
    return DEFAULT_DIFFICULTY.value


def load_json_object(text: str) -> Optional[dict]:
    """
    Parse the whole text as JSON, then fall back to the widest {...}
    substring. Returns None unless a JSON object is found.
    """
    stripped = text.strip()
    try:
        data = json.loads(stripped)
    except ValueError:
        data = None
    if isinstance(data, dict):
        return data

    match = JSON_OBJECT_PATTERN.search(stripped)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def normalize_recipe(data: dict, cuisine: Optional[str] = None) -> Optional[RecipeRecord]:
    """Build a well-formed record or return None when the object is unusable."""
    title = _clean_str(data.get("title"))
    ingredients = _clean_lines(data.get("ingredients"))
    instructions = _clean_lines(data.get("instructions"))
    if not title or not ingredients or not instructions:
        return None

    return RecipeRecord(
        title=title,
        description=_clean_str(data.get("description")),
        cuisine=_clean_str(data.get("cuisine")) or _clean_str(cuisine),
        prep_time=_to_minutes(data.get("prep_time")),
        cook_time=_to_minutes(data.get("cook_time")),
        servings=_to_servings(data.get("servings")),
        difficulty=normalize_difficulty(data.get("difficulty")),
        ingredients=ingredients,
        instructions=instructions,
    )


def build_fallback_draft(raw_text: str, prompt: str, cuisine: Optional[str] = None) -> RecipeRecord:
    if prompt:
        title = prompt[:DRAFT_TITLE_MAX_CHARS]
        if len(prompt) > DRAFT_TITLE_MAX_CHARS:
            title += "..."
    else:
        title = DRAFT_FALLBACK_TITLE

    return RecipeRecord(
        title=f"{title}{DRAFT_TITLE_SUFFIX}",
        description=DRAFT_DESCRIPTION,
        cuisine=_clean_str(cuisine),
        prep_time=None,
        cook_time=None,
        servings=None,
        difficulty=UNKNOWN_DIFFICULTY,
        ingredients=[],
        instructions=[str(raw_text or "")[:DRAFT_RAW_OUTPUT_MAX_CHARS]],
    )


def parse_recipe(raw_text: str, prompt: str, cuisine: Optional[str] = None) -> ParseResult:
    """Never raises: unparsable model output yields a draft record."""
    data = load_json_object(raw_text or "")
    record = normalize_recipe(data, cuisine) if data is not None else None
    if record is not None:
        return ParseResult(record=record, degraded=False)

    logger.warning("AI output could not be parsed as a recipe; storing draft for prompt=%r", prompt[:80])
    return ParseResult(record=build_fallback_draft(raw_text, prompt, cuisine), degraded=True)
