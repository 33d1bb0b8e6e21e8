"""Tests for JSON-LD Recipe extraction."""

import json

import pytest
from bs4 import BeautifulSoup

from recipe_scraper.adapters.base import NO_STEPS, UNKNOWN_TITLE, Ingredient
from recipe_scraper.extract.structured import (
    DEFAULT_DESCRIPTION,
    extract_structured,
    normalize_image,
    normalize_instructions,
    normalize_servings,
)


def page(*blocks) -> BeautifulSoup:
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return BeautifulSoup(f"<html><head>{scripts}</head><body></body></html>", "lxml")


class TestExtractStructured:
    """Whole-record extraction."""

    def test_minimal_recipe(self):
        soup = page({
            "@type": "Recipe",
            "name": "Test",
            "recipeIngredient": ["1 cup sugar"],
            "recipeInstructions": ["Mix well"],
            "recipeYield": "4",
        })
        record = extract_structured(soup)
        assert record.title == "Test"
        assert record.ingredients == [Ingredient("1 cup", "sugar")]
        assert record.steps == ["Mix well"]
        assert record.servings == 4

    def test_defaults_for_missing_fields(self):
        record = extract_structured(page({"@type": "Recipe"}))
        assert record.title == UNKNOWN_TITLE
        assert record.description == DEFAULT_DESCRIPTION
        assert record.ingredients == []
        assert record.steps == [NO_STEPS]
        assert record.image_url == ""
        assert record.prep_time == "15 mins"
        assert record.cook_time == "20 mins"
        assert record.servings == 4
        assert record.source_url is None

    def test_durations_parsed(self):
        record = extract_structured(page({"@type": "Recipe", "prepTime": "PT10M", "cookTime": "PT1H30M"}))
        assert record.prep_time == "10 mins"
        assert record.cook_time == "1h 30 mins"

    def test_no_blocks_returns_none(self):
        assert extract_structured(page()) is None

    def test_non_recipe_types_ignored(self):
        soup = page({"@type": "Organization", "name": "Tasty"}, {"@type": "WebSite"})
        assert extract_structured(soup) is None

    def test_malformed_block_skipped(self):
        soup = page("{ not json", {"@type": "Recipe", "name": "After The Broken One"})
        assert extract_structured(soup).title == "After The Broken One"

    def test_scalar_graph_skipped(self):
        soup = page('{"@graph": 5}', {"@type": "Recipe", "name": "Test", "recipeIngredient": ["1 cup sugar"]})
        assert extract_structured(soup).title == "Test"

    def test_non_finite_yield_keeps_record(self):
        for raw in ("Infinity", "NaN"):
            soup = page('{"@type": "Recipe", "name": "Odd Yield", "recipeYield": ' + raw + "}")
            record = extract_structured(soup)
            assert record.title == "Odd Yield"
            assert record.servings == 4

    def test_first_recipe_wins(self):
        soup = page({"@type": "Recipe", "name": "First"}, {"@type": "Recipe", "name": "Second"})
        assert extract_structured(soup).title == "First"

    def test_array_payload(self):
        soup = page([{"@type": "BreadcrumbList"}, {"@type": "Recipe", "name": "In A List"}])
        assert extract_structured(soup).title == "In A List"

    def test_graph_payload(self):
        soup = page({"@context": "https://schema.org", "@graph": [
            {"@type": "WebPage"},
            {"@type": "Recipe", "name": "In A Graph"},
        ]})
        assert extract_structured(soup).title == "In A Graph"

    def test_type_list(self):
        soup = page({"@type": ["Recipe", "NewsArticle"], "name": "Typed Twice"})
        assert extract_structured(soup).title == "Typed Twice"

    def test_custom_default_description(self):
        record = extract_structured(page({"@type": "Recipe", "name": "X"}), "From somewhere else")
        assert record.description == "From somewhere else"


class TestInstructionVariants:
    """Plain strings, objects with text, and typed HowToStep objects are all accepted."""

    def test_mixed_encodings(self):
        steps = normalize_instructions([
            "Preheat the oven.",
            {"text": "Mix the batter."},
            {"@type": "HowToStep", "text": "Bake 20 minutes."},
        ])
        assert steps == ["Preheat the oven.", "Mix the batter.", "Bake 20 minutes."]

    def test_sections_flattened(self):
        steps = normalize_instructions([
            {"@type": "HowToSection", "name": "Sauce", "itemListElement": [
                {"@type": "HowToStep", "text": "Melt butter."},
                {"@type": "HowToStep", "text": "Add flour."},
            ]},
            {"@type": "HowToStep", "text": "Serve."},
        ])
        assert steps == ["Melt butter.", "Add flour.", "Serve."]

    def test_single_string(self):
        assert normalize_instructions("Just mix it.") == ["Just mix it."]

    def test_unknown_shapes_dropped(self):
        assert normalize_instructions([42, None, {"name": "no text"}, "  "]) == []
        assert normalize_instructions(7) == []


class TestImageVariants:
    """First resolvable URL across all image encodings."""

    @pytest.mark.parametrize("raw", [
        "https://img/a.jpg",
        ["https://img/a.jpg", "https://img/b.jpg"],
        {"@type": "ImageObject", "url": "https://img/a.jpg"},
        [{"@type": "ImageObject", "url": "https://img/a.jpg"}, {"url": "https://img/b.jpg"}],
        [{"@type": "ImageObject"}, "https://img/a.jpg"],
    ])
    def test_resolves_first_url(self, raw):
        assert normalize_image(raw) == "https://img/a.jpg"

    @pytest.mark.parametrize("raw", [None, [], {}, 12, [None]])
    def test_unresolvable_is_empty(self, raw):
        assert normalize_image(raw) == ""


class TestServingsVariants:
    """Numeric, numeric-embedded strings, and arrays."""

    @pytest.mark.parametrize("raw,expected", [
        (6, 6),
        ("8", 8),
        ("Serves 2-3 people", 2),
        (["12 cookies", "12"], 12),
        ([3], 3),
    ])
    def test_parsed(self, raw, expected):
        assert normalize_servings(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "a few", [], 0, -2, True, {"value": 2}, float("inf"), float("nan")])
    def test_default_four(self, raw):
        assert normalize_servings(raw) == 4

    def test_yield_alias(self):
        record = extract_structured(page({"@type": "Recipe", "name": "Cookies", "yield": "24 cookies"}))
        assert record.servings == 24
