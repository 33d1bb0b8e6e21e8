"""CSS selector fallbacks, used when a page carries no JSON-LD Recipe.

Every field is an ordered list of strategies with the same signature,
``(soup) -> value | None``. ``first_match`` runs them in order and the first
non-empty value wins; when all of them come back empty the field default is
used.
"""

import logging
import re
from typing import Callable, Iterable, List, Optional, TypeVar

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
from recipe_scraper.extract.structured import (
    find_recipe_objects,
    normalize_ingredients,
    normalize_instructions,
)
from recipe_scraper.parsers import parse_ingredient_line

logger = logging.getLogger(__name__)

T = TypeVar("T")
Strategy = Callable[[BeautifulSoup], Optional[T]]

MIN_TITLE_LENGTH = 6
MIN_PARAGRAPH_STEP_LENGTH = 11

TITLE_SELECTORS = [
    "h1[data-testid='recipe-name']",
    "h1.recipe-name",
    "h1.recipe-title",
    ".recipe-title h1",
    ".recipe-header h1",
    ".recipe h1",
    "[itemprop='name']",
    ".entry-title",
    ".post-title",
    "h1",
    "title",
]

DESCRIPTION_SELECTORS = [
    "meta[name='description']",
    "meta[property='og:description']",
    ".recipe-description",
    ".recipe-summary",
]

INGREDIENT_SELECTORS = [
    "[data-testid='ingredient']",
    ".recipe-ingredients li",
    ".ingredients-section li",
    ".ingredient-list li",
    ".recipe-ingredient",
    "[itemprop='recipeIngredient']",
    ".ingredients li",
    ".ingredient",
]

STEP_SELECTORS = [
    "[data-testid='instruction']",
    ".recipe-instructions ol li",
    ".instructions-section ol li",
    ".recipe-method ol li",
    ".recipe-directions ol li",
    ".prep-steps li",
    "[itemprop='recipeInstructions']",
    ".instructions li",
    ".method li",
]

STEP_PARAGRAPH_SELECTORS = [
    ".recipe-instructions p",
    ".instructions-section p",
    ".recipe-method p",
    ".instructions p",
]

IMAGE_SELECTORS = [
    "meta[property='og:image']",
    ".recipe-image img",
    ".recipe-photo img",
    ".hero-image img",
    "img[alt*='recipe']",
]

PREP_TIME_SELECTORS = ["[data-testid='prep-time']", ".prep-time", ".recipe-prep-time"]
COOK_TIME_SELECTORS = ["[data-testid='cook-time']", ".cook-time", ".recipe-cook-time"]
SERVINGS_SELECTORS = ["[data-testid='servings']", ".servings", ".recipe-servings"]


def first_match(strategies: Iterable[Strategy], soup: BeautifulSoup, default: T) -> T:
    for strategy in strategies:
        value = strategy(soup)
        if value:
            return value
    return default


# --- strategy factories ------------------------------------------------------

def text_of(selector: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        text = el.get_text(" ", strip=True) if el else ""
        return text or None
    return strategy


def content_or_text_of(selector: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        if el is None:
            return None
        content = el.get("content") or el.get_text(" ", strip=True)
        return content.strip() or None
    return strategy


def http_url_of(selector: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        if el is None:
            return None
        src = el.get("content") or el.get("src") or ""
        return src if src.startswith("http") else None
    return strategy


def texts_of(selector: str, min_length: int = 1) -> Strategy:
    def strategy(soup: BeautifulSoup) -> Optional[List[str]]:
        texts = [el.get_text(" ", strip=True) for el in soup.select(selector)]
        texts = [t for t in texts if len(t) >= min_length]
        return texts or None
    return strategy


def title_of(selector: str, site_name: str) -> Strategy:
    suffix = re.compile(rf"\s*[|\-]\s*{re.escape(site_name)}\s*$", re.IGNORECASE) if site_name else None

    def strategy(soup: BeautifulSoup) -> Optional[str]:
        el = soup.select_one(selector)
        title = el.get_text(" ", strip=True) if el else ""
        if suffix is not None:
            title = suffix.sub("", title)
        return title if len(title) >= MIN_TITLE_LENGTH else None
    return strategy


def json_ld_ingredients(soup: BeautifulSoup) -> Optional[List[Ingredient]]:
    for obj in find_recipe_objects(soup):
        if obj.get("recipeIngredient"):
            return normalize_ingredients(obj["recipeIngredient"]) or None
    return None


def json_ld_steps(soup: BeautifulSoup) -> Optional[List[str]]:
    for obj in find_recipe_objects(soup):
        if obj.get("recipeInstructions"):
            return normalize_instructions(obj["recipeInstructions"]) or None
    return None


def _parsed_ingredients(selector: str) -> Strategy:
    lines = texts_of(selector)

    def strategy(soup: BeautifulSoup) -> Optional[List[Ingredient]]:
        found = lines(soup)
        return [parse_ingredient_line(t) for t in found] if found else None
    return strategy


def _servings_of(selector: str) -> Strategy:
    text = text_of(selector)

    def strategy(soup: BeautifulSoup) -> Optional[int]:
        match = re.search(r"(\d+)", text(soup) or "")
        return int(match.group(1)) if match else None
    return strategy


# --- field extractors --------------------------------------------------------

def extract_title(soup: BeautifulSoup, site_name: str = "Tasty") -> str:
    return first_match([title_of(s, site_name) for s in TITLE_SELECTORS], soup, UNKNOWN_TITLE)


def extract_description(soup: BeautifulSoup, default: str = "A delicious recipe from Tasty.co") -> str:
    return first_match([content_or_text_of(s) for s in DESCRIPTION_SELECTORS], soup, default)


def extract_ingredients(soup: BeautifulSoup) -> List[Ingredient]:
    strategies = [json_ld_ingredients] + [_parsed_ingredients(s) for s in INGREDIENT_SELECTORS]
    return first_match(strategies, soup, [])


def extract_steps(soup: BeautifulSoup) -> List[str]:
    strategies = (
        [json_ld_steps]
        + [texts_of(s) for s in STEP_SELECTORS]
        + [texts_of(s, MIN_PARAGRAPH_STEP_LENGTH) for s in STEP_PARAGRAPH_SELECTORS]
    )
    return first_match(strategies, soup, [NO_STEPS])


def extract_image_url(soup: BeautifulSoup) -> str:
    return first_match([http_url_of(s) for s in IMAGE_SELECTORS], soup, "")


def extract_prep_time(soup: BeautifulSoup) -> str:
    return first_match([text_of(s) for s in PREP_TIME_SELECTORS], soup, DEFAULT_PREP_TIME)


def extract_cook_time(soup: BeautifulSoup) -> str:
    return first_match([text_of(s) for s in COOK_TIME_SELECTORS], soup, DEFAULT_COOK_TIME)


def extract_servings(soup: BeautifulSoup) -> int:
    return first_match([_servings_of(s) for s in SERVINGS_SELECTORS], soup, DEFAULT_SERVINGS)


def extract_fallback(
    soup: BeautifulSoup,
    site_name: str = "Tasty",
    default_description: str = "A delicious recipe from Tasty.co",
) -> ExtractedRecord:
    record = ExtractedRecord(
        title=extract_title(soup, site_name),
        description=extract_description(soup, default_description),
        ingredients=extract_ingredients(soup),
        steps=extract_steps(soup),
        image_url=extract_image_url(soup),
        prep_time=extract_prep_time(soup),
        cook_time=extract_cook_time(soup),
        servings=extract_servings(soup),
    )
    logger.debug(
        f"Fallback extraction: title={record.title!r} "
        f"ingredients={len(record.ingredients)} steps={len(record.steps)}"
    )
    return record
