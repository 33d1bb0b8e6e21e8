import asyncio
import logging
from pathlib import Path
from typing import Callable

from playwright.async_api import async_playwright

from recipe_scraper.browser import CHROME_ARGS, UA

logger = logging.getLogger(__name__)


async def save_session(
    path: Path,
    start_url: str = "https://tasty.co",
    prompt: Callable[[str], str] = input,
) -> Path:
    """
    Opens a visible browser so you can accept cookie banners / log in by hand,
    then saves the storage state (cookies, localStorage) to `path`.
    Pass the file back with --storage-state (or STORAGE_STATE) on later runs.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=False, args=CHROME_ARGS)
        # Headed on purpose: the user has to interact with the page.
        try:
            context = await browser.new_context(user_agent=UA)
            page = await context.new_page()

            logger.info(f"Navigating to {start_url}...")
            await page.goto(start_url)

            logger.info("[ACTION REQUIRED]: Accept cookies / log in in the browser window.")
            await asyncio.to_thread(prompt, "\nPress Enter here when the page looks the way you want it...")
            # input() blocks; keep it off the event loop so the browser stays responsive.

            await context.storage_state(path=str(path))
            logger.info(f"[SUCCESS]: Session saved to '{path}'.")
        finally:
            await browser.close()

    return path
