"""The persisted product collection: one JSON array on disk.

The file is always read whole and rewritten whole.  Writes go to a sibling
temporary file that is then moved over the target, so a reader never sees a
half-written collection.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List


class StoreError(Exception):
    """The persisted collection exists but cannot be used."""


def load_collection(path: Path) -> List[Dict[str, Any]]:
    """Return the products stored at *path*, or ``[]`` if the file is absent.

    Raises:
        StoreError: If the file is not valid UTF-8 JSON or not a JSON array.
    """
    path = Path(path)
    if not path.exists():
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StoreError(f"{path} is not valid UTF-8 JSON: {exc}") from exc

    if not isinstance(data, list):
        raise StoreError(f"{path} must contain a JSON array, got {type(data).__name__}")
    return data


def save_collection(path: Path, products: Iterable[Dict[str, Any]]) -> None:
    """Atomically replace the collection at *path* with *products*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(list(products), indent=2, ensure_ascii=False)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def merge_products(
    existing: Iterable[Dict[str, Any]], new: Iterable[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Union *existing* and *new*, keeping the first record seen per URL."""
    merged: List[Dict[str, Any]] = []
    seen: set[str] = set()
    for product in list(existing) + list(new):
        url = product.get("url")
        if url in seen:
            continue
        if url is not None:
            seen.add(url)
        merged.append(product)
    return merged


def seen_urls(products: Iterable[Dict[str, Any]]) -> set[str]:
    return {p["url"] for p in products if p.get("url")}
