import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from playwright.async_api import async_playwright, Browser, Page, Playwright
# Import the asynchronous Playwright API.
# This allows us to launch and control the browser using async/await.

logger = logging.getLogger(__name__)


CHROME_ARGS = [
    "--disable-blink-features=AutomationControlled",
    # Keeps navigator.webdriver from being set automatically.

    "--no-sandbox",
    # Required inside Docker, CI/CD pipelines, or restricted environments.

    "--disable-setuid-sandbox",

    "--disable-dev-shm-usage",
    # /dev/shm is tiny inside containers; Chromium crashes without this.
]


UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)
# Playwright's default UA exposes automation; a desktop Chrome UA does not.


EXTRA_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class BrowserEngine:
    """
    One Chromium instance shared by the whole run.

    The browser is started once (cold start is the expensive part) and every
    page use gets its own browser context, so cookies and storage never leak
    from one recipe page into the next.

    Usage:
        async with BrowserEngine(headless=True) as engine:
            async with engine.new_page() as page:
                await page.goto(url)
    """

    def __init__(self, headless: bool = True, storage_state: Optional[Union[str, Path]] = None):
        self.headless = headless
        self.storage_state = storage_state
        self._pw: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def start(self) -> "BrowserEngine":
        if self._browser is not None:
            return self

        self._pw = await async_playwright().start()
        # Start the Playwright engine.

        self._browser = await self._pw.chromium.launch(headless=self.headless, args=CHROME_ARGS)
        # headless=True  → no visible UI (faster).
        # headless=False → full visible UI (useful for debugging selectors).

        logger.debug(f"Browser started (headless={self.headless})")
        return self

    async def stop(self) -> None:
        """Close Chromium and the Playwright driver; safe to call twice."""
        if self._browser is not None:
            await self._browser.close()
            # Completely closes the Chromium process (no zombie processes).
            self._browser = None
        if self._pw is not None:
            await self._pw.stop()
            # Stops the Node.js driver Playwright spawns.
            self._pw = None

    async def __aenter__(self) -> "BrowserEngine":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @asynccontextmanager
    async def new_page(self) -> AsyncIterator[Page]:
        """
        Open an isolated context + page; the context is closed on every exit path
        (success, navigation timeout, exception in the caller's block).
        """
        if self._browser is None:
            raise RuntimeError("BrowserEngine.start() must be called before new_page()")

        context = await self._browser.new_context(
            storage_state=self.storage_state if self.storage_state else None,
            # Optional saved cookies / localStorage.

            user_agent=UA,
            # Appear as a real Chrome desktop browser.

            viewport={"width": 1366, "height": 900},
            # Below ~800px many sites switch to a mobile DOM, which breaks selectors.

            extra_http_headers=EXTRA_HEADERS,
        )
        try:
            page = await context.new_page()
            yield page
        finally:
            await context.close()
            # Closes all pages/tabs under this context.
