"""Tests for the single-recipe scraper."""

import pytest
from playwright.async_api import Error as PlaywrightError

from fakes import FakeEngine, FakePage, recipe_page
from recipe_scraper.adapters.tasty import TastyAdapter
from recipe_scraper.errors import ExtractionValidationError, TransientFetchError
from recipe_scraper.item import RecipeScraper, extract_recipe

URL = "https://tasty.co/recipe/one-pot-garlic-parmesan-pasta"


def scraper_for(page, **kwargs):
    engine = FakeEngine(page)
    return engine, RecipeScraper(engine, TastyAdapter(), settle_ms=0, title_wait_ms=0, **kwargs)


class TestExtractRecipe:
    """Structured data first, CSS fallback second."""

    def test_json_ld_preferred(self):
        html = recipe_page("Structured Title") + "<ul class='recipe-ingredients'><li>1 cup css</li></ul>"
        record = extract_recipe(html, TastyAdapter())
        assert record.title == "Structured Title"
        assert [i.item for i in record.ingredients] == ["pasta", "garlic"]

    def test_fallback_without_json_ld(self):
        html = """
            <html><head><title>Banana Bread | Tasty</title></head><body>
            <ul class="recipe-ingredients"><li>3 bananas</li><li>2 cups flour</li><li>1 egg</li></ul>
            </body></html>
        """
        record = extract_recipe(html, TastyAdapter())
        assert record.title == "Banana Bread"
        assert len(record.ingredients) == 3
        assert record.description == "A delicious recipe from Tasty.co"


class TestRecipeScraper:
    """Render, extract, validate."""

    @pytest.mark.asyncio
    async def test_valid_page(self):
        page = FakePage([recipe_page()])
        engine, scraper = scraper_for(page)

        record = await scraper.scrape(URL)

        assert record.title == "One-Pot Garlic Parmesan Pasta"
        assert record.source_url == URL
        assert record.servings == 4
        assert record.cook_time == "1h 30 mins"
        assert page.visited == [URL]
        assert engine.opened == engine.closed == 1

    @pytest.mark.asyncio
    async def test_missing_title_selector_is_not_fatal(self):
        page = FakePage([recipe_page()], title_ready=False)
        _, scraper = scraper_for(page)
        record = await scraper.scrape(URL)
        assert record.is_valid

    @pytest.mark.asyncio
    async def test_no_ingredients_raises_validation_error(self):
        page = FakePage(["<html><body><h1>Mystery Casserole</h1></body></html>"])
        engine, scraper = scraper_for(page)

        with pytest.raises(ExtractionValidationError) as exc_info:
            await scraper.scrape(URL)

        assert exc_info.value.title == "Mystery Casserole"
        assert exc_info.value.ingredient_count == 0
        assert 'Title: "Mystery Casserole", Ingredients: 0' in str(exc_info.value)
        assert engine.closed == 1

    @pytest.mark.asyncio
    async def test_sentinel_title_is_invalid(self):
        html = "<html><body><ul class='recipe-ingredients'><li>1 cup rice</li></ul></body></html>"
        _, scraper = scraper_for(FakePage([html]))
        with pytest.raises(ExtractionValidationError):
            await scraper.scrape(URL)

    @pytest.mark.asyncio
    async def test_navigation_error_is_transient(self):
        page = FakePage(goto_error=PlaywrightError("net::ERR_CONNECTION_RESET"))
        engine, scraper = scraper_for(page)

        with pytest.raises(TransientFetchError) as exc_info:
            await scraper.scrape(URL)

        assert exc_info.value.url == URL
        assert "ERR_CONNECTION_RESET" in exc_info.value.reason
        assert engine.opened == engine.closed == 1

    @pytest.mark.asyncio
    async def test_page_closed_while_settling_is_transient(self):
        class ClosingPage(FakePage):
            async def wait_for_timeout(self, ms):
                raise PlaywrightError("Target page, context or browser has been closed")

        engine, scraper = scraper_for(ClosingPage([recipe_page()]))

        with pytest.raises(TransientFetchError) as exc_info:
            await scraper.scrape(URL)

        assert "has been closed" in exc_info.value.reason
        assert engine.opened == engine.closed == 1

    @pytest.mark.asyncio
    async def test_debug_dump_written_on_invalid_page(self, tmp_path):
        page = FakePage(["<html><head><title>Broken</title></head><body></body></html>"])
        _, scraper = scraper_for(page, debug_dir=tmp_path)

        with pytest.raises(ExtractionValidationError):
            await scraper.scrape(URL)

        dumps = list(tmp_path.glob("debug-*.html"))
        assert len(dumps) == 1
        assert "Broken" in dumps[0].read_text(encoding="utf-8")
