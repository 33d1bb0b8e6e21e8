import argparse
import asyncio
import signal
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from recipe_scraper.adapters.tasty import TastyAdapter
from recipe_scraper.config import ScraperConfig
from recipe_scraper.logging_setup import configure_logging
from recipe_scraper.pipeline import run_cleanup, run_scraper, run_stats, run_test
from recipe_scraper.session import save_session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Tasty recipe scraper")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--test", nargs="*", metavar="URL", default=None,
                      help="Scrape the given recipe URLs (or a sample one) without saving")
    mode.add_argument("--stats", action="store_true", help="Print store statistics and exit")
    mode.add_argument("--cleanup", action="store_true", help="Remove duplicate recipes and exit")
    mode.add_argument("--save-session", type=Path, default=None, metavar="PATH",
                      help="Open a visible browser, then save cookies/localStorage to PATH")

    p.add_argument("--max-recipes", type=int, default=None, help="Max recipes to process")
    p.add_argument("--tag", type=str, default=None, help="Listing tag to crawl (e.g. weeknight)")
    p.add_argument("--skip-images", action="store_true", help="Do not download recipe images")
    p.add_argument("--dry-run", action="store_true", help="Scrape but do not save anything")
    p.add_argument("--debug", action="store_true", help="Verbose logs + HTML dumps of failed pages")
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.add_argument("--db-path", type=Path, default=None, help="SQLite database path")
    p.add_argument("--max-runtime", type=int, default=None,
                   help="Stop launching new batches after this many seconds")
    p.add_argument("--storage-state", type=Path, default=None,
                   help="Playwright storage_state json (for sites needing login)")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> ScraperConfig:
    # Flags only override the environment when they were actually given.
    return ScraperConfig.from_env().with_overrides(
        max_recipes=args.max_recipes,
        target_tag=args.tag,
        skip_image_upload=True if args.skip_images else None,
        dry_run=True if args.dry_run else None,
        debug=True if args.debug else None,
        headless=False if args.headed else None,
        db_path=args.db_path,
        max_runtime_seconds=args.max_runtime,
        storage_state=args.storage_state,
    )


async def scrape_until_interrupted(config: ScraperConfig) -> int:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
        # First Ctrl-C: finish the running batch, skip the rest.
    except (NotImplementedError, RuntimeError):
        pass  # Windows event loops have no signal handlers.
    try:
        return await run_scraper(config, cancel_event=cancel_event)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    config = build_config(args)
    configure_logging(config.debug)

    if args.test is not None:
        return asyncio.run(run_test(config, args.test))
    if args.stats:
        return asyncio.run(run_stats(config))
    if args.cleanup:
        return asyncio.run(run_cleanup(config))
    if args.save_session is not None:
        asyncio.run(save_session(args.save_session, TastyAdapter.base_url))
        return 0
    return asyncio.run(scrape_until_interrupted(config))


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
