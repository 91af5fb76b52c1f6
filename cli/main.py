"""Catalog harvester CLI: entry-point for all pipeline operations.

Usage:
    python cli/main.py --help

Commands:
    run     → one incremental harvest (crawl, extract, normalize, merge)
    pages   → crawl listing pages only and print the item links
    item    → extract and normalize a single item URL
    serve   → start the read-only product API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from harvester.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from harvester.config import settings
from cli.rendering import render_links, render_product, render_report

logger = logging.getLogger("harvester.cli")

app = typer.Typer(
    name="harvest",
    help="Catalog harvester CLI.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """Route all log records to a rich console handler (and optionally a file)."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.addHandler(
        RichHandler(show_time=True, show_level=True, show_path=False)
    )

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(levelname)-8s - %(name)-25s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    # Third-party HTTP clients are chatty at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also log to this file."),
) -> None:
    """Catalog harvester CLI."""
    configure_logging(verbose=verbose, log_file=log_file)


# ---------------------------------------------------------------------------
# Pipeline commands
# ---------------------------------------------------------------------------

@app.command("run")
def run(
    base_query: Optional[str] = typer.Option(None, "--base-query", help="Listing search URL."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Stop after this many listing pages."),
    max_items: Optional[int] = typer.Option(None, "--max-items", help="Process at most this many new items."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Items processed at the same time."),
    output: Optional[Path] = typer.Option(None, "--output", help="Collection file (JSON array)."),
) -> None:
    """Harvest new items and merge them into the persisted collection."""
    from harvester.pipeline.coordinator import run_once

    try:
        report = asyncio.run(
            run_once(
                base_query=base_query,
                max_pages=max_pages,
                max_items=max_items,
                concurrency=concurrency,
                output_path=output,
            )
        )
    except KeyboardInterrupt:
        logger.warning("Harvest interrupted by user.")
        raise typer.Exit(130)
    except Exception as exc:
        logger.critical("Harvest failed: %s", exc, exc_info=True)
        raise typer.Exit(1)

    typer.echo(render_report(report))


@app.command("pages")
def pages(
    base_query: Optional[str] = typer.Option(None, "--base-query", help="Listing search URL."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Stop after this many listing pages."),
) -> None:
    """Crawl listing pages and print the item links found."""
    from harvester.scraper.paginator import crawl

    query = base_query or settings.base_query
    links = asyncio.run(crawl(query, max_pages=max_pages or settings.max_pages))
    typer.echo(f"[pages] {len(links)} item link(s) from {query!r}")
    typer.echo(render_links(links))


@app.command("item")
def item(
    url: str = typer.Option(..., "--url", help="Item page URL."),
    raw: bool = typer.Option(False, "--raw", help="Print the raw fragments instead of normalizing."),
) -> None:
    """Extract one item page and print its normalized record as JSON."""
    from harvester.llm.normalizer import normalize
    from harvester.scraper.browser import BrowserSession
    from harvester.scraper.item import ensure_complete, extract_item

    async def _extract():
        async with BrowserSession() as session:
            content = await extract_item(url, session)
            if content is not None and not content.is_complete:
                content = await ensure_complete(content, session)
            return content

    content = asyncio.run(_extract())
    if content is None:
        typer.echo(f"[item] Failed to scrape {url!r}")
        raise typer.Exit(1)

    if raw:
        typer.echo(f"[item] main: {len(content.main_fragment)} chars, tabs: {len(content.tabs_fragment)} chars")
        typer.echo(json.dumps(
            {"url": content.url, "main": content.main_fragment, "tabs": content.tabs_fragment},
            indent=2, ensure_ascii=False,
        ))
        return

    product = asyncio.run(normalize(content))
    if product is None:
        typer.echo(f"[item] Failed to normalize {url!r}")
        raise typer.Exit(1)

    record = product.to_dict()
    typer.echo(render_product(record))
    typer.echo(json.dumps(record, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Read service
# ---------------------------------------------------------------------------

@app.command("serve")
def serve(
    host: str = typer.Option("localhost", "--host", help="Bind address."),
    port: int = typer.Option(3000, "--port", envvar="PORT", help="Bind port."),
    output: Optional[Path] = typer.Option(None, "--output", help="Collection file to serve."),
) -> None:
    """Serve the collection through the read-only product API."""
    import uvicorn

    from harvester.api.app import create_app

    typer.echo(f"[serve] Server running at http://{host}:{port}")
    uvicorn.run(create_app(store_path=output), host=host, port=port, log_config=None)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
