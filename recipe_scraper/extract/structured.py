"""JSON-LD recipe extraction.

Recipe pages usually embed a schema.org ``Recipe`` object in one of their
``<script type="application/ld+json">`` blocks. When it is present it is
authoritative; the CSS fallback chain only runs when no block matches.

schema.org allows several shapes for the same field (``image`` can be a
string, a list of strings, an ``ImageObject`` or a list of those, and so on).
Each field has one normalizer per shape; shapes not listed fall through to the
field default instead of raising.
"""

import json
import logging
import math
import re
from typing import Any, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup

from recipe_scraper.adapters.base import (
    DEFAULT_COOK_TIME,
    DEFAULT_PREP_TIME,
    DEFAULT_SERVINGS,
    NO_STEPS,
    UNKNOWN_TITLE,
    ExtractedRecord,
    Ingredient,
)
from recipe_scraper.parsers import parse_duration, parse_ingredient_line

logger = logging.getLogger(__name__)

RECIPE_TYPE = "Recipe"
JSON_LD_SELECTOR = 'script[type="application/ld+json"]'
DEFAULT_DESCRIPTION = "A delicious recipe from Tasty.co"

_FIRST_INT_RE = re.compile(r"\d+")


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Any]:
    """Yield each parseable JSON-LD payload; malformed blocks are skipped."""
    for index, script in enumerate(soup.select(JSON_LD_SELECTOR)):
        raw = script.string or script.get_text() or ""
        if not raw.strip():
            continue
        try:
            yield json.loads(raw)
        except ValueError as e:
            logger.debug(f"Skipping malformed JSON-LD block #{index}: {e}")


def _candidates(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        graph = payload.get("@graph")
        items = [payload] + (graph if isinstance(graph, list) else [])
    else:
        return []
    return [x for x in items if isinstance(x, dict)]


def is_recipe(obj: Dict[str, Any]) -> bool:
    kind = obj.get("@type")
    if isinstance(kind, list):
        return RECIPE_TYPE in kind
    return kind == RECIPE_TYPE


def find_recipe_objects(soup: BeautifulSoup) -> Iterator[Dict[str, Any]]:
    for payload in iter_json_ld(soup):
        for obj in _candidates(payload):
            if is_recipe(obj):
                yield obj


# --- per-field normalizers ---------------------------------------------------

def normalize_ingredients(raw: Any) -> List[Ingredient]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    return [parse_ingredient_line(line) for line in raw if isinstance(line, str) and line.strip()]


def _step_text(step: Any) -> List[str]:
    if isinstance(step, str):
        return [step.strip()] if step.strip() else []
    if isinstance(step, dict):
        # HowToSection groups its steps under itemListElement
        if step.get("@type") == "HowToSection" and isinstance(step.get("itemListElement"), list):
            out: List[str] = []
            for inner in step["itemListElement"]:
                out.extend(_step_text(inner))
            return out
        text = step.get("text")
        if isinstance(text, str) and text.strip():
            return [text.strip()]
    return []


def normalize_instructions(raw: Any) -> List[str]:
    if isinstance(raw, (str, dict)):
        raw = [raw]
    if not isinstance(raw, list):
        return []
    steps: List[str] = []
    for step in raw:
        steps.extend(_step_text(step))
    return steps


def _image_url(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        url = value.get("url")
        return url if isinstance(url, str) and url else None
    return None


def normalize_image(raw: Any) -> str:
    if isinstance(raw, list):
        for entry in raw:
            url = _image_url(entry)
            if url:
                return url
        return ""
    return _image_url(raw) or ""


def _first_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None  # json.loads accepts Infinity and NaN
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = _FIRST_INT_RE.search(value)
        return int(match.group()) if match else None
    return None


def normalize_servings(raw: Any) -> int:
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    servings = _first_int(raw)
    if servings is None or servings <= 0:
        return DEFAULT_SERVINGS
    return servings


def _duration(raw: Any, default: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        return default
    return parse_duration(raw)


def record_from_json_ld(obj: Dict[str, Any], default_description: str = DEFAULT_DESCRIPTION) -> ExtractedRecord:
    yield_value = obj.get("recipeYield")
    if yield_value is None:
        yield_value = obj.get("yield")

    name = obj.get("name")
    description = obj.get("description")

    return ExtractedRecord(
        title=name.strip() if isinstance(name, str) and name.strip() else UNKNOWN_TITLE,
        description=description.strip() if isinstance(description, str) and description.strip() else default_description,
        ingredients=normalize_ingredients(obj.get("recipeIngredient")),
        steps=normalize_instructions(obj.get("recipeInstructions")) or [NO_STEPS],
        image_url=normalize_image(obj.get("image")),
        prep_time=_duration(obj.get("prepTime"), DEFAULT_PREP_TIME),
        cook_time=_duration(obj.get("cookTime"), DEFAULT_COOK_TIME),
        servings=normalize_servings(yield_value),
    )


def extract_structured(soup: BeautifulSoup, default_description: str = DEFAULT_DESCRIPTION) -> Optional[ExtractedRecord]:
    """Return the first JSON-LD Recipe on the page, or None."""
    for obj in find_recipe_objects(soup):
        try:
            return record_from_json_ld(obj, default_description)
        except (TypeError, AttributeError, ValueError) as e:
            logger.debug(f"Skipping unusable Recipe object: {e}")
    return None
