import asyncio
import logging
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from recipe_scraper.config import EXISTENCE_CHECK_DELAY

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


def recipe_slug(url: str) -> str:
    """Last non-empty path segment: https://tasty.co/recipe/easy-tacos/ -> easy-tacos."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    return segments[-1] if segments else ""


class ExistenceCache:
    """URL -> already-stored flag for one run. Entries are never evicted."""

    def __init__(self):
        self._known: Dict[str, bool] = {}

    def get(self, url: str) -> Optional[bool]:
        return self._known.get(url)

    def set(self, url: str, exists: bool) -> None:
        self._known[url] = exists

    def __contains__(self, url: str) -> bool:
        return url in self._known

    def __len__(self) -> int:
        return len(self._known)


class ExistenceFilter:
    """Drops URLs whose recipe is already in the store before anything gets scraped."""

    def __init__(self, store, cache: Optional[ExistenceCache] = None, check_delay: float = EXISTENCE_CHECK_DELAY):
        self.store = store
        self.cache = cache if cache is not None else ExistenceCache()
        self.check_delay = check_delay
        self.queries = 0

    async def exists(self, url: str) -> bool:
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        self.queries += 1
        try:
            found = bool(await self.store.exists(recipe_slug(url)))
        except Exception as e:
            # A failed lookup counts as "not stored"
            logger.debug(f"Error checking recipe existence for {url}: {e}")
            found = False
        self.cache.set(url, found)

        if self.check_delay > 0:
            await asyncio.sleep(self.check_delay)
        return found

    async def filter_new(self, urls: Iterable[str]) -> List[str]:
        urls = list(urls)
        new_urls: List[str] = []
        for checked, url in enumerate(urls, start=1):
            if not await self.exists(url):
                new_urls.append(url)
            if checked % PROGRESS_EVERY == 0:
                logger.info(f"Checked {checked}/{len(urls)} URLs (found {len(new_urls)} new)")
        return new_urls
