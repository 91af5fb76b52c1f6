"""Read-only product endpoints.

Routes
------
GET    /products                  List every product
GET    /products/search?q=<text>  Products whose name contains ``q``
GET    /products/reload           Reload the collection from disk
POST   /products/reload           Same as above
GET    /products/{item_id}        Fetch a single product by item number
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("")
def list_all(request: Request) -> dict[str, Any]:
    """Return the whole collection."""
    store = request.app.state.store
    products = store.products
    return {
        "success": True,
        "count": len(products),
        "total": store.count,
        "data": products,
        "last_updated": _now(),
    }


@router.get("/search")
def search(request: Request, q: Optional[str] = None) -> dict[str, Any]:
    """Search products by name (case-insensitive substring)."""
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query required")
    results = request.app.state.store.search(q.strip())
    return {
        "success": True,
        "count": len(results),
        "data": results,
        "last_updated": _now(),
    }


@router.api_route("/reload", methods=["GET", "POST"])
def reload(request: Request) -> dict[str, Any]:
    """Reload the collection from disk on demand."""
    store = request.app.state.store
    # An absent file is not a failure: the previous products are kept.
    if store.path.exists() and not store.reload():
        raise HTTPException(status_code=500, detail=f"Reload failed: {store.path} unreadable")
    return {
        "success": True,
        "message": f"Reloaded {store.count} products",
        "timestamp": _now(),
    }


@router.get("/{item_id}")
def get_one(item_id: str, request: Request) -> dict[str, Any]:
    """Fetch a single product by its item number."""
    product = request.app.state.store.get(item_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {item_id!r}")
    return {"success": True, "data": product, "last_updated": _now()}
