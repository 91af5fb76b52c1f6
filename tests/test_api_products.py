"""Tests for the read-only /products API.

All tests serve a temporary collection file via the FastAPI TestClient.
The file watcher is disabled; reloads are triggered explicitly.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from harvester.api.app import create_app
from harvester.store.collection import save_collection


PRODUCTS = [
    {"url": "https://x/itm/111", "product_name": "Nike Air Max 90", "item_number": "111"},
    {"url": "https://x/itm/222", "product_name": "Nike Dunk Low", "item_number": "222"},
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    path = tmp_path / "output.json"
    save_collection(path, PRODUCTS)
    return path


@pytest.fixture()
def client(store_path: Path):
    app = create_app(store_path=store_path, watch=False)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestStatus:
    def test_root_reports_count(self, client) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "running"
        assert body["product_count"] == 2
        assert body["last_reload"] is not None


class TestListProducts:
    def test_lists_everything(self, client) -> None:
        resp = client.get("/products")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["count"] == body["total"] == 2
        assert body["data"] == PRODUCTS

    def test_missing_file_serves_empty_list(self, tmp_path: Path) -> None:
        app = create_app(store_path=tmp_path / "absent.json", watch=False)
        with TestClient(app) as c:
            resp = c.get("/products")
        assert resp.json()["count"] == 0


class TestSearch:
    def test_case_insensitive_match(self, client) -> None:
        resp = client.get("/products/search", params={"q": "DUNK"})
        assert resp.status_code == 200
        assert [p["item_number"] for p in resp.json()["data"]] == ["222"]

    def test_missing_query_is_rejected(self, client) -> None:
        resp = client.get("/products/search")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Search query required"


class TestDetail:
    def test_found(self, client) -> None:
        resp = client.get("/products/111")
        assert resp.status_code == 200
        assert resp.json()["data"]["product_name"] == "Nike Air Max 90"

    def test_not_found(self, client) -> None:
        assert client.get("/products/999").status_code == 404


class TestReload:
    @pytest.mark.parametrize("method", ["get", "post"])
    def test_reload_picks_up_changes(self, client, store_path: Path, method: str) -> None:
        save_collection(store_path, PRODUCTS + [{"url": "https://x/itm/333", "item_number": "333"}])

        resp = getattr(client, method)("/products/reload")

        assert resp.status_code == 200
        assert resp.json()["message"] == "Reloaded 3 products"
        assert client.get("/products/333").status_code == 200

    def test_reload_failure_keeps_previous_data(self, client, store_path: Path) -> None:
        store_path.write_text("garbage", encoding="utf-8")

        resp = client.post("/products/reload")

        assert resp.status_code == 500
        assert client.get("/products").json()["count"] == 2

    def test_reload_with_non_utf8_file_reports_failure(self, client, store_path: Path) -> None:
        store_path.write_bytes(b'[{"url": "\xff\xfe"}]')

        resp = client.post("/products/reload")

        assert resp.status_code == 500
        assert client.get("/products").json()["count"] == 2

    def test_reload_with_absent_file_succeeds(self, client, store_path: Path) -> None:
        store_path.unlink()

        resp = client.post("/products/reload")

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert client.get("/products").json()["count"] == 2

    def test_startup_survives_non_utf8_file(self, store_path: Path) -> None:
        store_path.write_bytes(b"\xff\xfe garbage")
        app = create_app(store_path=store_path, watch=False)
        with TestClient(app) as c:
            assert c.get("/products").json()["count"] == 0
