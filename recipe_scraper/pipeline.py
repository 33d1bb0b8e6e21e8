"""Top-level run modes: full scrape, test scrape, stats and cleanup."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from recipe_scraper.adapters.base import ExtractedRecord, SiteAdapter
from recipe_scraper.adapters.tasty import TastyAdapter
from recipe_scraper.batch import BatchOrchestrator, BatchResult, SaveFn
from recipe_scraper.browser import BrowserEngine
from recipe_scraper.catalog import generate_recipe_id
from recipe_scraper.config import STAGGER_SECONDS, ScraperConfig
from recipe_scraper.dispatcher import discover_recipe_urls, pick_adapter
from recipe_scraper.errors import DiscoveryError, ScraperError
from recipe_scraper.existence import ExistenceCache, ExistenceFilter
from recipe_scraper.item import RecipeScraper
from recipe_scraper.media import ImageDownloader, generate_slug
from recipe_scraper.store import SQLiteRecipeStore

logger = logging.getLogger(__name__)

DEFAULT_TEST_URLS = ["https://tasty.co/recipe/one-pot-garlic-parmesan-pasta"]


def engine_for(config: ScraperConfig) -> BrowserEngine:
    return BrowserEngine(headless=config.headless, storage_state=config.storage_state)


def make_persist(store, downloader: Optional[ImageDownloader], dry_run: bool) -> SaveFn:
    """The per-item save step: optional image download, then the store (or nothing on a dry run)."""
    async def persist(record: ExtractedRecord) -> Optional[str]:
        if dry_run:
            logger.info(f"DRY RUN: Would save {record.title}")
            return generate_recipe_id(record.source_url or "")

        if downloader is not None and record.image_url:
            record.image_url = await downloader.download(record.image_url, generate_slug(record.title))
        return await store.save(record)

    return persist


def print_summary(result: BatchResult, duplicates_removed: int, stats: Dict[str, Any]) -> None:
    print("\nScraping completed!")
    print("=" * 36)
    print("Results:")
    print(f"   Successful: {result.successful}")
    print(f"   Failed: {result.failed}")
    print(f"   Skipped: {result.skipped}")
    print(f"   Duplicates removed: {duplicates_removed}")
    print("")
    print("Database stats:")
    print(f"   Total recipes: {stats['total_recipes']}")
    print(f"   Tasty recipes: {stats['tasty_recipes']} ({stats['tasty_percentage']}%)")
    print(f"   Recently scraped: {stats['recently_scraped']}")

    if result.errors:
        print("\nErrors encountered:")
        for index, (url, message) in enumerate(result.errors, start=1):
            print(f"   {index}. {url} | {message}")


async def run_scraper(
    config: ScraperConfig,
    *,
    engine=None,
    store=None,
    downloader: Optional[ImageDownloader] = None,
    adapter: Optional[SiteAdapter] = None,
    cancel_event: Optional[asyncio.Event] = None,
    stagger: float = STAGGER_SECONDS,
    listing_options: Optional[Dict[str, Any]] = None,
    scraper_options: Optional[Dict[str, Any]] = None,
) -> int:
    """Full run. Returns the process exit code: 0 on completion, 1 on a fatal error."""
    logger.info("Starting Tasty Recipe Scraper")
    logger.info(f"Configuration: {config}")

    adapter = adapter or TastyAdapter()
    owns_store = store is None
    store = store if store is not None else SQLiteRecipeStore(config.db_path)
    owns_engine = engine is None
    engine = engine if engine is not None else engine_for(config)

    skip_images = config.skip_image_upload or config.dry_run
    if not skip_images:
        downloader = downloader or ImageDownloader(config.media_dir)
        if not downloader.check_access():
            logger.warning("Media directory access failed. Proceeding without image download.")
            skip_images = True

    try:
        if owns_engine:
            await engine.start()

        initial = await store.stats()
        logger.info(f"Initial stats: {initial}")

        logger.info("\nStep 1: Fetching recipe URLs...")
        existence_filter = ExistenceFilter(store, ExistenceCache())
        urls = await discover_recipe_urls(
            engine,
            adapter,
            config.target_tag,
            config.max_recipes,
            existence_filter,
            **(listing_options or {}),
        )
        if not urls:
            raise DiscoveryError("No recipe URLs found")
        logger.info(f"Found {len(urls)} recipe URLs (tag: {config.target_tag})")

        logger.info("\nStep 2: Processing recipes...")
        scraper = RecipeScraper(
            engine,
            adapter,
            debug_dir=config.debug_dir if config.debug else None,
            **(scraper_options or {}),
        )
        orchestrator = BatchOrchestrator(
            scraper.scrape,
            make_persist(store, None if skip_images else downloader, config.dry_run),
            stagger=stagger,
        )
        deadline = None
        if config.max_runtime_seconds:
            deadline = asyncio.get_running_loop().time() + config.max_runtime_seconds
        result = await orchestrator.run(
            urls,
            config.batch_size,
            config.delay_between_batches_ms / 1000,
            config.delay_between_recipes_ms / 1000,
            cancel_event=cancel_event,
            deadline=deadline,
        )

        logger.info("\nStep 3: Cleanup and final statistics...")
        duplicates = await store.cleanup_duplicates()
        final = await store.stats()
        print_summary(result, duplicates, final)
        return 0

    except DiscoveryError as e:
        logger.error(f"{e}. Exiting.")
        return 1
    except Exception:
        logger.exception("Fatal error during scraping")
        return 1
    finally:
        if owns_engine:
            await engine.stop()
        if downloader is not None:
            await downloader.close()
        if owns_store:
            store.close()


def _describe(record: ExtractedRecord) -> List[str]:
    lines = [
        f"  Title: {record.title}",
        f"  Description: {record.description[:100]}...",
        f"  Ingredients: {len(record.ingredients)} items",
        f"  Instructions: {len(record.steps)} steps",
        f"  Image URL: {'Yes' if record.image_url else 'No'}",
        f"  Prep Time: {record.prep_time}",
        f"  Cook Time: {record.cook_time}",
        f"  Servings: {record.servings}",
    ]
    if record.ingredients:
        lines.append("  Sample ingredients:")
        for ing in record.ingredients[:3]:
            lines.append("    - " + " ".join(part for part in (ing.quantity, ing.item) if part))
    if record.steps:
        lines.append("  Sample instruction:")
        lines.append(f"    1. {record.steps[0][:100]}")
    return lines


async def run_test(
    config: ScraperConfig,
    urls: Optional[Sequence[str]] = None,
    *,
    engine=None,
    pause: float = 2.0,
    scraper_options: Optional[Dict[str, Any]] = None,
) -> int:
    """Scrape a few URLs without saving anything and print what was extracted."""
    urls = list(urls or DEFAULT_TEST_URLS)
    logger.info(f"Running scraper test with {len(urls)} URL(s)...")

    owns_engine = engine is None
    engine = engine if engine is not None else engine_for(config)
    failures = 0
    try:
        if owns_engine:
            await engine.start()
        for index, url in enumerate(urls):
            try:
                scraper = RecipeScraper(
                    engine,
                    pick_adapter(url),
                    debug_dir=config.debug_dir if config.debug else None,
                    **(scraper_options or {}),
                )
                record = await scraper.scrape(url)
                print(f"\nTesting: {url}")
                print("\n".join(_describe(record)))
                print("Test successful")
            except (ScraperError, ValueError) as e:
                failures += 1
                logger.error(f"Test failed for {url}: {e}")
            if pause > 0 and index < len(urls) - 1:
                await asyncio.sleep(pause)
    finally:
        if owns_engine:
            await engine.stop()

    print(f"\nTest completed: {len(urls) - failures}/{len(urls)} URL(s) scraped")
    return 0


async def run_stats(config: ScraperConfig, *, store=None) -> int:
    if store is None:
        store = SQLiteRecipeStore(config.db_path)
        try:
            return await run_stats(config, store=store)
        finally:
            store.close()

    stats = await store.stats()
    print("Current scraping statistics:")
    for key, value in stats.items():
        print(f"   {key}: {value}")
    return 0


async def run_cleanup(config: ScraperConfig, *, store=None) -> int:
    if store is None:
        store = SQLiteRecipeStore(config.db_path)
        try:
            return await run_cleanup(config, store=store)
        finally:
            store.close()

    removed = await store.cleanup_duplicates()
    print(f"Cleanup completed. Removed {removed} duplicates.")
    return 0
