import enum
import logging
from typing import Dict, List

from bs4 import BeautifulSoup
from playwright.async_api import Error as PWError

from recipe_scraper.adapters.base import SiteAdapter, normalize_url
from recipe_scraper.config import (
    BETWEEN_PAGES_MS,
    LISTING_SETTLE_MS,
    LOAD_MORE_SETTLE_MS,
    MAX_LISTING_PAGES,
    NAV_TIMEOUT_MS,
    SCROLL_PAUSE_MS,
    SCROLL_STEPS,
)

logger = logging.getLogger(__name__)


class StopReason(enum.Enum):
    TARGET_REACHED = "target reached"
    NO_LOAD_MORE = "no load-more control"
    SAFETY_CAP = "safety page cap"
    NO_NEW_URLS = "no new URLs"
    BROWSER_ERROR = "browser error"


def extract_links(html: str, adapter: SiteAdapter) -> List[str]:
    """Absolute, normalized recipe URLs in document order (duplicates kept)."""
    soup = BeautifulSoup(html, "lxml")
    out: List[str] = []
    for a in soup.select(adapter.RECIPE_LINK):
        href = (a.get("href") or "").strip()
        if not href:
            continue
        url = normalize_url(href, adapter.base_url)
        if adapter.is_recipe_url(url):
            out.append(url)
    return out


async def _click_load_more(page, selector: str) -> bool:
    if not selector:
        return False
    try:
        button = await page.query_selector(selector)
        if button is None:
            return False
        await button.click()
        return True
    except PWError as e:
        logger.debug(f"Load more button not clickable: {e}")
        return False


async def collect_listing_links(
    page,
    adapter: SiteAdapter,
    listing_url: str,
    max_urls: int,
    *,
    max_pages: int = MAX_LISTING_PAGES,
    scroll_steps: int = SCROLL_STEPS,
    scroll_pause_ms: int = SCROLL_PAUSE_MS,
    listing_settle_ms: int = LISTING_SETTLE_MS,
    load_more_settle_ms: int = LOAD_MORE_SETTLE_MS,
    between_pages_ms: int = BETWEEN_PAGES_MS,
    nav_timeout_ms: int = NAV_TIMEOUT_MS,
) -> List[str]:
    """
    Scroll a listing page, pressing "Load More" until one of these holds, checked in order:
    the cap is reached, no load-more control exists, the safety page cap is hit,
    or a pass added no new URLs.
    """
    # dict keeps insertion order, which makes repeated runs return the same ordering
    seen: Dict[str, None] = {}
    reason = StopReason.NO_NEW_URLS
    page_count = 1

    if max_urls <= 0:
        return []

    try:
        logger.info(f"Scraping listing page: {listing_url}")
        await page.goto(listing_url, wait_until="domcontentloaded", timeout=nav_timeout_ms)
        await page.wait_for_timeout(listing_settle_ms)

        while True:
            logger.info(f"Loading page {page_count} (collected {len(seen)} URLs)")

            # 1) Scroll to the bottom a few times so lazy content renders
            for _ in range(scroll_steps):
                await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
                await page.wait_for_timeout(scroll_pause_ms)

            # 2) Snapshot + collect
            html = await page.content()
            before = len(seen)
            for url in extract_links(html, adapter):
                if len(seen) >= max_urls:
                    break
                seen.setdefault(url, None)
            new_count = len(seen) - before
            logger.info(f"  Found {new_count} URLs on page {page_count} (total: {len(seen)})")

            # 3) Termination checks
            if len(seen) >= max_urls:
                reason = StopReason.TARGET_REACHED
                break

            if not await _click_load_more(page, adapter.LOAD_MORE):
                reason = StopReason.NO_LOAD_MORE
                break
            await page.wait_for_timeout(load_more_settle_ms)

            page_count += 1
            if page_count > max_pages:
                reason = StopReason.SAFETY_CAP
                break

            if new_count == 0:
                reason = StopReason.NO_NEW_URLS
                break

            await page.wait_for_timeout(between_pages_ms)

    except PWError as e:
        reason = StopReason.BROWSER_ERROR
        logger.error(f"Error scraping listing {listing_url}: {e}")

    if reason is StopReason.SAFETY_CAP:
        logger.warning(f"[TERMINATE] Safety limit reached: processed {max_pages} pages")
    elif reason is StopReason.NO_NEW_URLS:
        logger.info("[TERMINATE] No new URLs found, reached end of content")
    elif reason is StopReason.NO_LOAD_MORE:
        logger.info("[TERMINATE] No load more button found, finishing URL collection")
    elif reason is StopReason.TARGET_REACHED:
        logger.info(f"[DONE] Target reached: {len(seen)} URLs collected")

    logger.info(f"Finished collecting URLs: {len(seen)} total ({reason.value})")
    return list(seen)
