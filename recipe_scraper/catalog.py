"""Conversion of scraped records into the stored recipe document."""

import hashlib
import re
from datetime import datetime, timezone
from typing import Any, Dict, List

from recipe_scraper.adapters.base import (
    DEFAULT_COOK_TIME,
    DEFAULT_PREP_TIME,
    DEFAULT_SERVINGS,
    ExtractedRecord,
    Ingredient,
)

SOURCE = "tasty.co"
ID_PREFIX = "tasty-"

_RECIPE_PATH_RE = re.compile(r"/recipe/([^/?#]+)")

MEAT = ("chicken", "beef", "pork", "bacon", "turkey", "ham")
DAIRY = ("cheese", "milk", "butter", "cream", "yogurt")
EXPENSIVE = ("beef", "salmon", "shrimp", "lobster", "cheese", "nuts")

MEAL_KEYWORDS = [
    ("breakfast", ("breakfast", "pancake", "waffle", "oatmeal", "cereal", "toast")),
    ("lunch", ("lunch", "sandwich", "wrap", "salad", "soup")),
    ("dinner", ("dinner", "main", "entree")),
    ("snacks", ("snack", "appetizer", "dip", "bite", "finger food")),
]
CUISINE_KEYWORDS = [
    ("italian", ("italian", "pasta", "pizza")),
    ("mexican", ("mexican", "taco", "burrito")),
    ("asian", ("asian", "chinese", "thai")),
    ("indian", ("indian", "curry")),
]
METHOD_KEYWORDS = [
    ("baked", ("baked", "roasted")),
    ("grilled", ("grilled",)),
    ("fried", ("fried",)),
]


def recipe_id_for_slug(slug: str) -> str:
    return f"{ID_PREFIX}{slug}"


def generate_recipe_id(source_url: str) -> str:
    match = _RECIPE_PATH_RE.search(source_url or "")
    if match:
        return recipe_id_for_slug(match.group(1))
    digest = hashlib.md5((source_url or "").encode("utf-8")).hexdigest()
    return recipe_id_for_slug(digest[:8])


def _first_keyword_tag(text: str, table) -> str:
    for tag, words in table:
        if any(w in text for w in words):
            return tag
    return ""


def generate_recipe_tags(record: ExtractedRecord) -> List[str]:
    title = record.title.lower()
    ingredients = " ".join(ing.item.lower() for ing in record.ingredients)
    tags: List[str] = []

    meal = _first_keyword_tag(title, MEAL_KEYWORDS)
    if not meal:
        match = re.search(r"(\d+)", record.cook_time or "")
        minutes = int(match.group(1)) if match else 30
        if minutes <= 15:
            meal = "snacks"
        elif minutes <= 30:
            meal = "lunch"
        else:
            meal = "dinner"
    tags.append(meal)

    if any(w in ingredients for w in MEAT):
        pass
    elif any(w in ingredients for w in DAIRY):
        tags.append("vegetarian")
    elif "egg" not in ingredients:
        tags.extend(["vegetarian", "vegan"])

    for table in (CUISINE_KEYWORDS, METHOD_KEYWORDS):
        tag = _first_keyword_tag(title, table)
        if tag:
            tags.append(tag)

    tags.append("tasty")
    return tags


def estimate_recipe_cost(ingredients: List[Ingredient]) -> float:
    """$1.50 per ingredient, +$2 per expensive ingredient kind, kept within $3-$25."""
    cost = len(ingredients) * 1.50
    text = " ".join(ing.item.lower() for ing in ingredients)
    cost += 2 * sum(1 for word in EXPENSIVE if word in text)
    return min(max(cost, 3), 25)


def to_app_recipe(record: ExtractedRecord) -> Dict[str, Any]:
    return {
        "id": generate_recipe_id(record.source_url or ""),
        "name": record.title,
        "description": record.description,
        "prepTime": record.prep_time or DEFAULT_PREP_TIME,
        "cookTime": record.cook_time or DEFAULT_COOK_TIME,
        "servings": record.servings or DEFAULT_SERVINGS,
        "ingredients": [{"measurement": i.quantity, "item": i.item} for i in record.ingredients],
        "instructions": list(record.steps),
        "imageUrl": record.image_url or "",
        "tags": generate_recipe_tags(record),
        "estimatedCost": estimate_recipe_cost(record.ingredients),
        "source": SOURCE,
        "sourceUrl": record.source_url,
        "scrapedAt": datetime.now(timezone.utc).isoformat(),
    }
