"""Merge coordinator: one incremental harvesting run.

``run_once`` orchestrates the whole pipeline:

    load collection → crawl listing pages → keep unseen URLs
    → extract / complete / normalize each URL (bounded, settle-all)
    → merge with the collection → atomic save

Per-item failures only drop that item from the run.  Failing to read or
write the collection, or to launch the browser, aborts the run before
anything is written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from harvester.config import settings
from harvester.llm.normalizer import normalize
from harvester.pacing import random_pause
from harvester.pipeline.executor import fulfilled_values, run_bounded
from harvester.scraper.browser import BrowserSession
from harvester.scraper.item import ensure_complete, extract_item
from harvester.scraper.paginator import crawl
from harvester.store.collection import (
    load_collection,
    merge_products,
    save_collection,
    seen_urls,
)

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Counters describing one run, for operator output."""

    found: int = 0
    unseen: int = 0
    attempted: int = 0
    succeeded: int = 0
    total: int = 0
    written: bool = False


async def process_item(url: str, session: BrowserSession) -> Optional[Dict[str, Any]]:
    """Extract, complete and normalize one item; ``None`` if it was dropped.

    A jittered cooldown is applied before returning, whatever the outcome.
    """
    try:
        logger.info("Scraping %s ...", url)
        content = await extract_item(url, session)
        if content is None:
            logger.warning("Failed to scrape: %s", url)
            return None
        logger.info("Scraped: %s", url)

        if not content.is_complete:
            content = await ensure_complete(content, session)

        logger.info("Normalizing %s ...", url)
        product = await normalize(content)
        if product is None:
            logger.warning("Failed to normalize: %s", url)
            return None

        logger.info("Normalized: %s", url)
        return product.to_dict()
    except Exception as exc:
        logger.error("Error processing %s: %s", url, exc)
        return None
    finally:
        await random_pause(settings.job_cooldown_min, settings.job_cooldown_max)


def select_unseen(
    links: List[str], seen: set[str], max_items: Optional[int] = None
) -> List[str]:
    """Return *links* not in *seen*, capped at *max_items* when given."""
    unseen = [link for link in links if link not in seen]
    if max_items:
        unseen = unseen[:max_items]
    return unseen


async def run_once(
    base_query: Optional[str] = None,
    max_pages: Optional[int] = None,
    max_items: Optional[int] = None,
    concurrency: Optional[int] = None,
    output_path: Optional[Path] = None,
) -> RunReport:
    """Run one incremental harvest and persist the merged collection.

    Arguments left as ``None`` fall back to ``settings``.
    """
    base_query = base_query or settings.base_query
    max_pages = max_pages if max_pages is not None else settings.max_pages
    max_items = max_items if max_items is not None else settings.max_items_per_run
    concurrency = concurrency or settings.concurrency
    output_path = Path(output_path) if output_path is not None else settings.output_path

    report = RunReport()

    # 1. Existing collection
    existing = load_collection(output_path)
    logger.info("Loaded %d existing products from %s", len(existing), output_path)
    seen = seen_urls(existing)

    # 2. Crawl listing pages
    logger.info("Scraping pages from: %s", base_query)
    links = await crawl(base_query, max_pages=max_pages)
    report.found = len(links)
    logger.info("Found %d products across pages", report.found)

    # 3. Unseen subset
    batch = select_unseen(links, seen, max_items)
    report.unseen = len(batch)
    report.total = len(existing)
    logger.info("Scraping %d new products", report.unseen)

    # 4. Nothing to do
    if not batch:
        logger.info("All products already scraped. Exiting.")
        return report

    # 5-8. Shared browser session for the whole batch
    async with BrowserSession() as session:
        jobs = [lambda url=url: process_item(url, session) for url in batch]
        outcomes = await run_bounded(jobs, concurrency)
    report.attempted = len(outcomes)

    new_products = fulfilled_values(outcomes)
    report.succeeded = len(new_products)

    # 9. Merge and persist
    merged = merge_products(existing, new_products)
    save_collection(output_path, merged)
    report.total = len(merged)
    report.written = True

    logger.info(
        "Attempted %d, added %d new products; total saved: %d",
        report.attempted, report.succeeded, report.total,
    )
    return report
