"""Read-side handle on the persisted collection, used by the query API.

:class:`ProductStore` keeps the last successfully loaded collection in
memory.  It is refreshed explicitly via :meth:`ProductStore.reload`, or
automatically by :meth:`ProductStore.watch`, which polls the file and
debounces bursts of changes into a single reload.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from harvester.store.collection import StoreError, load_collection

logger = logging.getLogger(__name__)


class ProductStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self._products: List[Dict[str, Any]] = []
        self.last_reload: Optional[datetime] = None
        self._pending: Optional[asyncio.TimerHandle] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Read the collection from disk.

        A missing or unreadable file is logged and the previously loaded
        products are kept.  Returns ``True`` when new data was loaded.
        """
        if not self.path.exists():
            logger.error("File %s not found", self.path)
            return False
        try:
            products = load_collection(self.path)
        except (OSError, StoreError) as exc:
            logger.error("Error loading products: %s", exc)
            return False

        self._products = products
        self.last_reload = datetime.now(timezone.utc)
        logger.info("Reloaded %d products", len(products))
        return True

    reload = load

    def schedule_reload(self, delay: float) -> None:
        """Reload after *delay* seconds, cancelling any reload still pending."""
        if self._pending is not None:
            self._pending.cancel()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(delay, self._fire_reload)

    def _fire_reload(self) -> None:
        self._pending = None
        logger.info("Reloading products data...")
        self.reload()

    async def watch(self, interval: float, debounce: float) -> None:
        """Poll the file every *interval* seconds and reload on change.

        Runs until cancelled.
        """
        logger.info("Watching %s for changes...", self.path)
        last_seen = self._signature()
        try:
            while True:
                await asyncio.sleep(interval)
                signature = self._signature()
                if signature != last_seen:
                    logger.info("Detected change in %s", self.path.name)
                    last_seen = signature
                    self.schedule_reload(debounce)
        finally:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _signature(self) -> Optional[Tuple[int, int, int]]:
        try:
            stat = self.path.stat()
            return stat.st_mtime_ns, stat.st_size, stat.st_ino
        except FileNotFoundError:
            return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def products(self) -> List[Dict[str, Any]]:
        return self._products

    @property
    def count(self) -> int:
        return len(self._products)

    def search(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on ``product_name``."""
        needle = query.lower()
        return [
            p for p in self._products
            if isinstance(p.get("product_name"), str) and needle in p["product_name"].lower()
        ]

    def get(self, item_number: str) -> Optional[Dict[str, Any]]:
        for product in self._products:
            if product.get("item_number") == item_number:
                return product
        return None
