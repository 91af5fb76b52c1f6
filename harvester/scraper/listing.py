"""Listing page fetcher: pulls one catalog results page and extracts item links."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx
from bs4 import BeautifulSoup

from harvester.config import settings
from harvester.scraper.headers import random_headers
from harvester.scraper.models import ListingPage


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def page_url(base_query: str, page: int) -> str:
    """Return *base_query* with the page-number parameter set to *page*."""
    url = httpx.URL(base_query)
    return str(url.copy_set_param(settings.page_param, str(page)))


def normalize_item_url(href: str, base_url: str) -> Optional[str]:
    """Return the canonical item URL for *href*, or ``None`` if it is not an item.

    Relative links are resolved against *base_url*; a bare host
    (``ebay.com``) is rewritten to the base's ``www.`` host; query string and
    fragment are dropped.
    """
    href = (href or "").strip()
    if not href:
        return None

    parts = urlsplit(urljoin(base_url, href))
    if parts.scheme not in ("http", "https"):
        return None
    if not re.search(settings.item_path_pattern, parts.path):
        return None

    netloc = parts.netloc
    base_host = urlsplit(base_url).netloc
    if base_host.startswith("www.") and netloc == base_host[len("www."):]:
        netloc = base_host

    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_listing_html(html: str, base_url: str) -> ListingPage:
    """Extract item links and the next-page signal from a listing page.

    The first item container on a results page is a hidden template slot and
    is always skipped.
    """
    soup = BeautifulSoup(html, "html.parser")

    links: List[str] = []
    for index, item in enumerate(soup.select(settings.item_selector)):
        if index == 0:
            continue
        anchor = item.select_one(settings.item_link_selector)
        if anchor is None:
            continue
        url = normalize_item_url(anchor.get("href", ""), base_url)
        if url:
            links.append(url)

    next_button = soup.select_one(settings.next_page_selector)
    has_next = next_button is not None and next_button.get("aria-disabled") != "true"

    return ListingPage(links=links, has_next=has_next)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def fetch_listing_page(
    client: httpx.AsyncClient, base_query: str, page: int
) -> ListingPage:
    """Fetch page *page* of *base_query* and parse it.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.RequestError: On timeouts, connection failures, redirect loops
            and undecodable response bodies.
    """
    url = page_url(base_query, page)
    origin = urlsplit(base_query)
    response = await client.get(
        url,
        headers=random_headers(referer=f"{origin.scheme}://{origin.netloc}/"),
        timeout=settings.listing_timeout,
    )
    response.raise_for_status()
    return parse_listing_html(response.text, base_query)
