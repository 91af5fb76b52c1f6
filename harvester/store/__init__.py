"""Persisted product collection and its read-side handle."""

from harvester.store.collection import (
    StoreError,
    load_collection,
    merge_products,
    save_collection,
    seen_urls,
)
from harvester.store.reader import ProductStore

__all__ = [
    "StoreError",
    "load_collection",
    "save_collection",
    "merge_products",
    "seen_urls",
    "ProductStore",
]
