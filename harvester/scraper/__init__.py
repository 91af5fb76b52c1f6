"""Scraper package: listing pagination and browser-based item extraction."""

from harvester.scraper.browser import BrowserSession
from harvester.scraper.item import ensure_complete, extract_item
from harvester.scraper.listing import fetch_listing_page, parse_listing_html
from harvester.scraper.models import ListingPage, RawItemContent, StructuredProduct
from harvester.scraper.paginator import crawl

__all__ = [
    "crawl",
    "fetch_listing_page",
    "parse_listing_html",
    "extract_item",
    "ensure_complete",
    "BrowserSession",
    "ListingPage",
    "RawItemContent",
    "StructuredProduct",
]
