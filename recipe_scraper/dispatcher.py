import logging
from urllib.parse import urlparse
# Used to extract the domain (hostname) from a URL.
# Example: urlparse("https://tasty.co/recipe/x").netloc → "tasty.co"

from typing import List, Optional

from recipe_scraper.adapters.base import SiteAdapter
from recipe_scraper.adapters.tasty import TastyAdapter
from recipe_scraper.existence import ExistenceFilter
from recipe_scraper.utils.stream import collect_listing_links

logger = logging.getLogger(__name__)


# List of all registered adapters.
# Each adapter declares which domains it supports, so we can match URLs dynamically.
ADAPTERS: List[SiteAdapter] = [
    TastyAdapter(),
]

# Listing pages are over-collected so that enough URLs survive the existence filter.
DISCOVERY_HEADROOM = 2


def pick_adapter(url: str) -> SiteAdapter:
    """
    Selects the appropriate adapter for the given URL based on its domain.
    Example:
        URL containing "tasty.co" → TastyAdapter
    """
    host = urlparse(url).netloc.lower()

    for a in ADAPTERS:
        if any(d in host for d in a.domains):
            return a

    raise ValueError(f"No adapter registered for host: {host}")


async def discover_recipe_urls(
    engine,
    adapter: SiteAdapter,
    tag: str,
    limit: int,
    existence_filter: Optional[ExistenceFilter] = None,
    **listing_options,
) -> List[str]:
    """
    High-level discovery.
    Steps:
        1. Open an isolated page on the shared browser engine.
        2. Scroll the tag listing and press "Load More" until it stops growing.
        3. Drop URLs the store already has (when a filter is given).
        4. Truncate to `limit`.
    The page is always released, even if collection raised.
    """
    listing_url = adapter.tag_url(tag)
    logger.info(f"Targeting tag: {tag} (limit: {limit})")

    async with engine.new_page() as page:
        urls = await collect_listing_links(
            page,
            adapter,
            listing_url,
            max_urls=limit * DISCOVERY_HEADROOM,
            **listing_options,
        )

    if existence_filter is not None and urls:
        logger.info(f"Checking {len(urls)} URLs against database...")
        new_urls = await existence_filter.filter_new(urls)
        logger.info(f"Found {len(new_urls)} new recipes ({len(urls) - len(new_urls)} already exist)")
        urls = new_urls

    final = urls[:limit]
    if final:
        logger.info("Sample URLs:")
        for i, url in enumerate(final[:3], start=1):
            logger.info(f"  {i}. {url}")
    return final
