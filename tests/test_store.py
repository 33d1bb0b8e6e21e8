"""Tests for the SQLite store and the stored recipe document."""

import sqlite3

import pytest

from fakes import make_record
from recipe_scraper.adapters.base import Ingredient
from recipe_scraper.catalog import (
    estimate_recipe_cost,
    generate_recipe_id,
    generate_recipe_tags,
    to_app_recipe,
)
from recipe_scraper.errors import PersistenceError
from recipe_scraper.store import SQLiteRecipeStore, normalize_name


@pytest.fixture
def store(tmp_path):
    s = SQLiteRecipeStore(tmp_path / "db" / "recipes.db")
    yield s
    s.close()


class TestSQLiteRecipeStore:
    """Save / exists / cleanup / stats against a temporary database."""

    @pytest.mark.asyncio
    async def test_save_then_exists(self, store):
        record = make_record(url="https://tasty.co/recipe/garlic-pasta")
        assert not await store.exists("garlic-pasta")

        doc_id = await store.save(record)

        assert doc_id == "tasty-garlic-pasta"
        assert await store.exists("garlic-pasta")
        saved = await store.get(doc_id)
        assert saved["name"] == "Garlic Pasta"
        assert saved["sourceUrl"] == "https://tasty.co/recipe/garlic-pasta"
        assert saved["ingredients"][0] == {"measurement": "2 cups", "item": "pasta"}

    @pytest.mark.asyncio
    async def test_save_twice_keeps_one_row(self, store):
        record = make_record()
        assert await store.save(record) == await store.save(record)
        stats = await store.stats()
        assert stats["total_recipes"] == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("tasty-nope") is None

    @pytest.mark.asyncio
    async def test_cleanup_removes_same_name(self, store):
        await store.save(make_record(title="Garlic Pasta", url="https://tasty.co/recipe/garlic-pasta"))
        await store.save(make_record(title="Garlic  Pasta!", url="https://tasty.co/recipe/garlic-pasta-2"))
        await store.save(make_record(title="Lemon Bars", url="https://tasty.co/recipe/lemon-bars"))

        assert await store.cleanup_duplicates() == 1
        assert await store.exists("garlic-pasta")
        assert not await store.exists("garlic-pasta-2")
        assert await store.cleanup_duplicates() == 0

    @pytest.mark.asyncio
    async def test_stats(self, store):
        assert await store.stats() == {
            "total_recipes": 0,
            "tasty_recipes": 0,
            "recently_scraped": 0,
            "tasty_percentage": 0.0,
        }
        await store.save(make_record(url="https://tasty.co/recipe/a"))
        await store.save(make_record(title="Other", url="https://tasty.co/recipe/b"))

        stats = await store.stats()
        assert stats["total_recipes"] == 2
        assert stats["tasty_recipes"] == 2
        assert stats["recently_scraped"] == 2
        assert stats["tasty_percentage"] == 100.0

    @pytest.mark.asyncio
    async def test_exists_raises_persistence_error(self, store, monkeypatch):
        async def run(fn):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(store, "_run", run)
        with pytest.raises(PersistenceError):
            await store.exists("anything")

    @pytest.mark.asyncio
    async def test_save_failure_returns_none(self, store, monkeypatch):
        async def run(fn):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(store, "_run", run)
        assert await store.save(make_record()) is None

    def test_normalize_name(self):
        assert normalize_name("Garlic  Pasta!") == normalize_name("garlic pasta") == "garlicpasta"


class TestCatalog:
    """Ids, tags and cost of the stored document."""

    def test_id_from_recipe_path(self):
        assert generate_recipe_id("https://tasty.co/recipe/easy-tacos?x=1") == "tasty-easy-tacos"

    def test_id_hash_fallback(self):
        doc_id = generate_recipe_id("https://tasty.co/compilation/weeknight")
        assert doc_id.startswith("tasty-")
        assert len(doc_id) == len("tasty-") + 8
        assert doc_id == generate_recipe_id("https://tasty.co/compilation/weeknight")

    def test_tags_by_title(self):
        record = make_record(title="Baked Chicken Pasta Dinner",
                             ingredients=[Ingredient("1 lb", "chicken breast")])
        assert generate_recipe_tags(record) == ["dinner", "italian", "baked", "tasty"]

    def test_tags_by_cook_time_and_diet(self):
        record = make_record(title="Quick Greens", ingredients=[Ingredient("2 cups", "spinach")])
        record.cook_time = "10 mins"
        assert generate_recipe_tags(record) == ["snacks", "vegetarian", "vegan", "tasty"]

    def test_dairy_is_vegetarian_only(self):
        record = make_record(title="Cheesy Grits", ingredients=[Ingredient("1 cup", "cheddar cheese")])
        record.cook_time = "45 mins"
        assert generate_recipe_tags(record) == ["dinner", "vegetarian", "tasty"]

    def test_cost_bounds(self):
        assert estimate_recipe_cost([]) == 3
        assert estimate_recipe_cost([Ingredient("1", "x")] * 30) == 25

    def test_cost_expensive_items(self):
        ingredients = [Ingredient("1 lb", "shrimp"), Ingredient("1 cup", "parmesan cheese")]
        assert estimate_recipe_cost(ingredients) == 2 * 1.5 + 2 * 2

    def test_app_recipe_shape(self):
        doc = to_app_recipe(make_record())
        assert doc["id"] == "tasty-garlic-pasta"
        assert doc["source"] == "tasty.co"
        assert doc["instructions"] == ["Boil.", "Toss."]
        assert set(doc) >= {"prepTime", "cookTime", "servings", "imageUrl", "tags", "estimatedCost", "scrapedAt"}
