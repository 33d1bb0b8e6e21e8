import logging
import time
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from recipe_scraper.adapters.base import ExtractedRecord, SiteAdapter
from recipe_scraper.config import NAV_TIMEOUT_MS, PAGE_SETTLE_MS, TITLE_WAIT_MS
from recipe_scraper.errors import ExtractionValidationError, TransientFetchError
from recipe_scraper.extract.fallback import extract_fallback
from recipe_scraper.extract.structured import extract_structured

logger = logging.getLogger(__name__)


def extract_recipe(html: str, adapter: SiteAdapter) -> ExtractedRecord:
    """JSON-LD first; the full CSS fallback chain only when no Recipe block exists."""
    soup = BeautifulSoup(html, "lxml")
    record = extract_structured(soup, adapter.default_description())
    if record is not None:
        logger.debug("Recipe extracted from JSON-LD")
        return record
    logger.debug("No JSON-LD Recipe found, falling back to CSS selectors")
    return extract_fallback(soup, adapter.site_name, adapter.default_description())


class RecipeScraper:
    """Render one recipe page, extract it, and validate the result."""

    def __init__(
        self,
        engine,
        adapter: SiteAdapter,
        *,
        nav_timeout_ms: int = NAV_TIMEOUT_MS,
        settle_ms: int = PAGE_SETTLE_MS,
        title_wait_ms: int = TITLE_WAIT_MS,
        debug_dir: Optional[Path] = None,
    ):
        self.engine = engine
        self.adapter = adapter
        self.nav_timeout_ms = nav_timeout_ms
        self.settle_ms = settle_ms
        self.title_wait_ms = title_wait_ms
        self.debug_dir = debug_dir

    async def render(self, url: str) -> str:
        async with self.engine.new_page() as page:
            try:
                await page.goto(url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
            except PlaywrightError as e:
                raise TransientFetchError(url, str(e)) from e

            try:
                await page.wait_for_timeout(self.settle_ms)
            except PlaywrightError as e:
                raise TransientFetchError(url, str(e)) from e

            try:
                await page.wait_for_selector(self.adapter.TITLE_READY, timeout=self.title_wait_ms)
            except PlaywrightError:
                logger.info("Recipe title not found with expected selectors, proceeding anyway...")

            try:
                return await page.content()
            except PlaywrightError as e:
                raise TransientFetchError(url, str(e)) from e

    async def scrape(self, url: str) -> ExtractedRecord:
        logger.info(f"Scraping recipe: {url}")
        html = await self.render(url)
        record = extract_recipe(html, self.adapter)

        if not record.is_valid:
            if self.debug_dir is not None:
                self._dump_debug(url, html, record)
            raise ExtractionValidationError(url, record.title, len(record.ingredients))

        record.source_url = url
        logger.info(f"Successfully scraped: {record.title}")
        return record

    def _dump_debug(self, url: str, html: str, record: ExtractedRecord) -> None:
        self.debug_dir.mkdir(parents=True, exist_ok=True)
        path = self.debug_dir / f"debug-{int(time.time() * 1000)}.html"
        path.write_text(html, encoding="utf-8")

        soup = BeautifulSoup(html, "lxml")
        page_title = soup.title.get_text(strip=True) if soup.title else ""
        logger.debug(f"Saved page content to {path}")
        logger.debug(f"Debug info for {url}:")
        logger.debug(f'- Title: "{record.title}"')
        logger.debug(f"- Ingredients: {len(record.ingredients)} found")
        logger.debug(f"- Instructions: {len(record.steps)} found")
        logger.debug(f'- Page title: "{page_title}"')
        logger.debug(f"- H1 elements: {len(soup.find_all('h1'))} found")
