"""FastAPI application factory for the read-only product API.

Lifespan
--------
On startup the app loads the persisted collection into a
:class:`~harvester.store.reader.ProductStore` (shared across requests via
``request.app.state.store``) and starts a background task that reloads it
whenever the file changes.  On shutdown the watcher task is cancelled.

Routers
-------
    /products  list, search, detail and manual reload
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request

from harvester.api.routers import products as products_router
from harvester.config import settings
from harvester.store.reader import ProductStore


def create_app(store_path: Optional[Path] = None, watch: bool = True) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        store_path: Collection file to serve.  Defaults to
            ``settings.output_path``.
        watch: Reload automatically when the file changes.
    """
    store = ProductStore(store_path or settings.output_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Load the store on startup; run the file watcher until shutdown."""
        store.load()
        app.state.store = store
        watcher = None
        if watch:
            watcher = asyncio.create_task(
                store.watch(settings.watch_interval, settings.reload_debounce)
            )
        try:
            yield
        finally:
            if watcher is not None:
                watcher.cancel()
                with suppress(asyncio.CancelledError):
                    await watcher

    app = FastAPI(
        title="Catalog Harvester API",
        description="Read-only access to the harvested product collection.",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/")
    def status(request: Request) -> dict[str, Any]:
        """Service status and endpoint overview."""
        current = request.app.state.store
        return {
            "status": "running",
            "message": "Catalog Harvester API is running",
            "endpoints": [
                "GET /products",
                "GET /products/search?q={query}",
                "GET /products/{itemId}",
                "POST /products/reload",
            ],
            "product_count": current.count,
            "last_reload": current.last_reload.isoformat() if current.last_reload else None,
        }

    app.include_router(products_router.router, prefix="/products", tags=["products"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn harvester.api.app:app --reload
app = create_app()
