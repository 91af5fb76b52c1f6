"""Item extraction: render one item page and read its two content regions."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from harvester.config import settings
from harvester.scraper.browser import BrowserSession
from harvester.scraper.models import RawItemContent

logger = logging.getLogger(__name__)

_READ_FRAGMENTS = """
([mainSelector, tabsSelector]) => {
    const read = (selector) => {
        const el = document.querySelector(selector);
        return el ? el.innerHTML.trim() : '';
    };
    return { main: read(mainSelector), tabs: read(tabsSelector) };
}
"""


async def extract_item(url: str, session: BrowserSession) -> Optional[RawItemContent]:
    """Render *url* and return its raw content fragments.

    Waiting for the content regions is best-effort: if neither shows up in
    time the page is read anyway.  Any other failure (navigation timeout,
    network error, closed browser) is logged and reported as ``None``.
    """
    main_selector = settings.main_content_selector
    tabs_selector = settings.tabs_content_selector
    try:
        async with session.open_page() as page:
            logger.info("Navigating to: %s", url)
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=settings.navigation_timeout * 1000,
            )
            try:
                await page.wait_for_selector(
                    f"{main_selector}, {tabs_selector}",
                    state="visible",
                    timeout=settings.content_wait_timeout * 1000,
                )
            except PlaywrightTimeoutError:
                logger.info("Key elements not found on %s, proceeding anyway", url)

            fragments = await page.evaluate(_READ_FRAGMENTS, [main_selector, tabs_selector])
    except Exception as exc:
        logger.error("Error scraping %s: %s", url, exc)
        return None

    return RawItemContent(
        url=url,
        main_fragment=fragments.get("main") or "",
        tabs_fragment=fragments.get("tabs") or "",
    )


async def ensure_complete(
    content: RawItemContent,
    session: BrowserSession,
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
) -> RawItemContent:
    """Re-extract *content*'s URL until both fragments are present.

    Returns the first complete result.  Once ``max_retries`` attempts have
    been used up, returns the latest partial result that has at least as many
    non-empty regions as the best one seen so far.
    """
    if content.is_complete:
        return content

    max_retries = settings.max_retries if max_retries is None else max_retries
    delay = settings.retry_delay if delay is None else delay

    logger.info("Main content or tabs content is empty for %s, waiting...", content.url)
    latest = content
    for attempt in range(1, max_retries + 1):
        await asyncio.sleep(delay)
        logger.info("Retrying scrape of %s (%d/%d)", content.url, attempt, max_retries)
        retried = await extract_item(content.url, session)
        if retried is None:
            continue
        if retried.is_complete:
            logger.info("Both content regions found for %s", content.url)
            return retried
        if _filled(retried) >= _filled(latest):
            latest = retried

    logger.warning("Max retries reached, content still incomplete for %s", content.url)
    return latest


def _filled(content: RawItemContent) -> int:
    return int(bool(content.main_fragment)) + int(bool(content.tabs_fragment))
