"""Tests for the persisted collection and the read-side ProductStore."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from harvester.store.collection import (
    StoreError,
    load_collection,
    merge_products,
    save_collection,
    seen_urls,
)
from harvester.store.reader import ProductStore


PRODUCTS = [
    {"url": "https://x/itm/111", "product_name": "Nike Air Max 90", "item_number": "111"},
    {"url": "https://x/itm/222", "product_name": "Nike Dunk Low", "item_number": "222"},
]


# ---------------------------------------------------------------------------
# collection.py
# ---------------------------------------------------------------------------

class TestLoadCollection:
    def test_absent_file_is_empty(self, tmp_path: Path) -> None:
        assert load_collection(tmp_path / "output.json") == []

    def test_reads_json_array(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        path.write_text(json.dumps(PRODUCTS), encoding="utf-8")
        assert load_collection(path) == PRODUCTS

    def test_malformed_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(StoreError):
            load_collection(path)

    def test_non_utf8_file_raises_store_error(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        path.write_bytes(b'[{"url": "\xff\xfe"}]')
        with pytest.raises(StoreError):
            load_collection(path)

    def test_non_array_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        path.write_text('{"url": "x"}', encoding="utf-8")
        with pytest.raises(StoreError):
            load_collection(path)


class TestSaveCollection:
    def test_writes_utf8_array_and_leaves_no_temp_files(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "output.json"
        products = [{"url": "https://x/itm/333", "product_name": "Sepatu Lari — édition"}]

        save_collection(path, products)

        assert json.loads(path.read_text(encoding="utf-8")) == products
        assert "édition" in path.read_text(encoding="utf-8")
        assert [p.name for p in path.parent.iterdir()] == ["output.json"]

    def test_overwrites_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        save_collection(path, PRODUCTS)
        save_collection(path, PRODUCTS[:1])
        assert load_collection(path) == PRODUCTS[:1]

    def test_failed_write_keeps_previous_file(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        save_collection(path, PRODUCTS)

        with pytest.raises(TypeError):
            save_collection(path, [{"url": "https://x/itm/999", "bad": object()}])

        assert load_collection(path) == PRODUCTS


class TestMergeProducts:
    def test_union_without_duplicate_urls(self) -> None:
        new = [{"url": "https://x/itm/222", "product_name": "dup"}, {"url": "https://x/itm/333"}]
        merged = merge_products(PRODUCTS, new)

        assert [p["url"] for p in merged] == [
            "https://x/itm/111",
            "https://x/itm/222",
            "https://x/itm/333",
        ]
        assert merged[1]["product_name"] == "Nike Dunk Low"

    def test_seen_urls(self) -> None:
        assert seen_urls(PRODUCTS + [{"product_name": "no url"}]) == {
            "https://x/itm/111",
            "https://x/itm/222",
        }


# ---------------------------------------------------------------------------
# reader.py
# ---------------------------------------------------------------------------

@pytest.fixture()
def store_file(tmp_path: Path) -> Path:
    path = tmp_path / "output.json"
    save_collection(path, PRODUCTS)
    return path


class TestProductStore:
    def test_load_and_query(self, store_file: Path) -> None:
        store = ProductStore(store_file)
        assert store.load() is True

        assert store.count == 2
        assert store.last_reload is not None
        assert [p["item_number"] for p in store.search("dunk")] == ["222"]
        assert store.search("adidas") == []
        assert store.get("111")["product_name"] == "Nike Air Max 90"
        assert store.get("999") is None

    def test_search_ignores_non_string_names(self, tmp_path: Path) -> None:
        path = tmp_path / "output.json"
        save_collection(path, [{"url": "u", "product_name": {"odd": "shape"}}])
        store = ProductStore(path)
        store.load()
        assert store.search("odd") == []

    def test_missing_file_keeps_empty_store(self, tmp_path: Path) -> None:
        store = ProductStore(tmp_path / "absent.json")
        assert store.load() is False
        assert store.products == []

    def test_reload_keeps_previous_data_on_corruption(self, store_file: Path) -> None:
        store = ProductStore(store_file)
        store.load()
        store_file.write_text("not json", encoding="utf-8")

        assert store.reload() is False
        assert store.count == 2

    def test_reload_keeps_previous_data_on_non_utf8_bytes(self, store_file: Path) -> None:
        store = ProductStore(store_file)
        store.load()
        store_file.write_bytes(b'[{"url": "\xff\xfe"}]')

        assert store.reload() is False
        assert store.count == 2

    def test_reload_picks_up_new_content(self, store_file: Path) -> None:
        store = ProductStore(store_file)
        store.load()
        save_collection(store_file, PRODUCTS[:1])

        assert store.reload() is True
        assert store.count == 1


class TestDebouncedReload:
    async def test_burst_of_changes_reloads_once(self, store_file: Path, monkeypatch) -> None:
        store = ProductStore(store_file)
        calls = []
        monkeypatch.setattr(store, "reload", lambda: calls.append(1) or True)

        for _ in range(5):
            store.schedule_reload(0.02)
            await asyncio.sleep(0.001)
        await asyncio.sleep(0.05)

        assert calls == [1]

    async def test_watch_detects_file_change(self, store_file: Path) -> None:
        store = ProductStore(store_file)
        store.load()
        watcher = asyncio.create_task(store.watch(interval=0.01, debounce=0.01))
        try:
            await asyncio.sleep(0.03)
            save_collection(store_file, PRODUCTS + [{"url": "https://x/itm/333", "item_number": "333"}])
            for _ in range(100):
                await asyncio.sleep(0.01)
                if store.count == 3:
                    break
        finally:
            watcher.cancel()
            with pytest.raises(asyncio.CancelledError):
                await watcher

        assert store.count == 3
        assert store.get("333") is not None
