"""Shared headless browser session for item page rendering.

One :class:`BrowserSession` is opened per batch.  Each item job gets its own
browser context (random viewport and user agent, stealth overrides) through
:meth:`BrowserSession.open_page`, so concurrent jobs never share a page.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

from harvester.config import settings
from harvester.scraper.headers import random_browser_user_agent, random_viewport

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
]

# Runs before any page script: hides the usual automation fingerprints.
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""


class BrowserSession:
    """Owns the Playwright driver and one Chromium instance."""

    def __init__(self, headless: Optional[bool] = None):
        self.headless = settings.headless if headless is None else headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch the browser.  Failures propagate: no session, no batch."""
        logger.debug("Starting Playwright and launching Chromium (headless=%s)", self.headless)
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=_LAUNCH_ARGS
            )
        except BaseException:
            await self.close()
            raise

    async def close(self) -> None:
        """Close the browser and stop Playwright; errors are logged only."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as exc:
                logger.warning("Error while closing browser: %s", exc)
            self._browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                logger.warning("Error while stopping Playwright: %s", exc)
            self._playwright = None
        logger.debug("Playwright resources released.")

    @asynccontextmanager
    async def open_page(self) -> AsyncIterator[Page]:
        """Yield a fresh page with a randomized fingerprint.

        The page and its context are closed on every exit path.
        """
        if self._browser is None:
            raise RuntimeError("BrowserSession is not started")

        context = await self._browser.new_context(
            viewport=random_viewport(),
            user_agent=random_browser_user_agent(),
            ignore_https_errors=True,
        )
        page = None
        try:
            await context.add_init_script(STEALTH_SCRIPT)
            page = await context.new_page()
            yield page
        finally:
            if page is not None:
                try:
                    if not page.is_closed():
                        await page.close()
                except Exception as exc:
                    logger.warning("Error while closing page: %s", exc)
            try:
                await context.close()
            except Exception as exc:
                logger.warning("Error while closing browser context: %s", exc)
