"""Pagination driver: walks listing pages in order and collects item links.

Stop conditions, checked per page:

* the page counter exceeds ``max_pages`` (when given);
* a page yields no valid item links (end of results);
* the next-page affordance is missing or disabled;
* the listing source answers 404 or 5xx;
* ``settings.max_consecutive_errors`` transient failures in a row.

Other failures (timeouts, connection resets, redirect loops, undecodable
bodies, 403/429) are logged and the crawl moves on to the next page.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from harvester.config import settings
from harvester.pacing import random_pause
from harvester.scraper.listing import fetch_listing_page

logger = logging.getLogger(__name__)


def _is_terminal_status(status_code: int) -> bool:
    return status_code == 404 or status_code >= 500


async def crawl(base_query: str, max_pages: Optional[int] = None) -> List[str]:
    """Collect item links from every listing page of *base_query*.

    Pages are fetched strictly in order with a jittered delay between
    requests.  Links are deduplicated, first occurrence wins.

    Args:
        base_query: Search results URL without the page parameter.
        max_pages: Optional ceiling on the number of pages visited.

    Returns:
        The ordered list of canonical item URLs.
    """
    links: List[str] = []
    seen: set[str] = set()
    page = 1
    consecutive_errors = 0

    async with httpx.AsyncClient(follow_redirects=True) as client:
        while True:
            if max_pages is not None and page > max_pages:
                logger.info("Reached maximum page limit (%d)", max_pages)
                break

            logger.info("Scraping page %d ...", page)
            keep_going = True
            try:
                listing = await fetch_listing_page(client, base_query, page)
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                logger.warning("Listing page %d failed with HTTP %d", page, status)
                if _is_terminal_status(status):
                    keep_going = False
                else:
                    consecutive_errors += 1
            except httpx.RequestError as exc:
                logger.warning("Listing page %d failed: %s", page, exc)
                consecutive_errors += 1
            else:
                consecutive_errors = 0
                if not listing.links:
                    logger.info("No products found on page %d, stopping pagination", page)
                    keep_going = False
                else:
                    added = 0
                    for link in listing.links:
                        if link not in seen:
                            seen.add(link)
                            links.append(link)
                            added += 1
                    logger.info(
                        "Found %d products on page %d (%d new)",
                        len(listing.links), page, added,
                    )
                    if not listing.has_next:
                        logger.info("No more pages available")
                        keep_going = False

            if consecutive_errors >= settings.max_consecutive_errors:
                logger.error(
                    "Giving up after %d consecutive listing failures", consecutive_errors
                )
                keep_going = False

            if not keep_going:
                break

            await random_pause(settings.page_delay_min, settings.page_delay_max)
            page += 1

    return links
