import re
from typing import Optional

from recipe_scraper.adapters.base import Ingredient

# PT1H30M, PT45M, PT20S ... (unanchored, like most recipe sites emit it)
_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", re.IGNORECASE)

_UNITS = (
    "cups?", "tbsp", "tsp", "oz", "lbs?", "g", "kg", "ml", "l",
    "cloves?", "pieces?", "slices?", "pinch", "dash",
)

# Quantity: 2 / 1/2 / 1.5, optionally followed by a unit that ends on a word boundary.
# Without the trailing \b, "2 large eggs" would split as "2 l" / "arge eggs".
# Compound lines ("2 large eggs, beaten", "1 (14 oz) can ...") are split naively.
_INGREDIENT_RE = re.compile(
    r"^(\d+(?:/\d+)?(?:\.\d+)?\s*(?:(?:" + "|".join(_UNITS) + r")\b)?)\s*(.+)$",
    re.IGNORECASE,
)


def parse_duration(raw: Optional[str]) -> str:
    """Turn an ISO-8601 duration (``PT1H30M``) into ``"1h 30 mins"``.

    Seconds are only shown when there are no hours. Strings without a ``PT``
    token are returned as-is.
    """
    if raw is None or not str(raw).strip():
        return "0 mins"
    text = str(raw).strip()

    match = _DURATION_RE.search(text)
    if not match:
        return text

    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes} mins")
    if seconds > 0 and hours == 0:
        parts.append(f"{seconds}s")
    return " ".join(parts) if parts else "0 mins"


def parse_ingredient_line(text: str) -> Ingredient:
    """Split ``"2 cups flour"`` into quantity ``"2 cups"`` and item ``"flour"``."""
    line = (text or "").strip()
    match = _INGREDIENT_RE.match(line)
    if match:
        return Ingredient(quantity=match.group(1).strip(), item=match.group(2).strip())
    return Ingredient(quantity="", item=line)
