"""Plain-text rendering helpers for CLI output."""

from __future__ import annotations

from typing import Any, Dict, List

from harvester.pipeline.coordinator import RunReport


def render_report(report: RunReport) -> str:
    """Render the counters of one harvesting run."""
    lines = [
        "--- Harvest complete ---",
        f"  Found     : {report.found}",
        f"  New       : {report.unseen}",
        f"  Attempted : {report.attempted}",
        f"  Succeeded : {report.succeeded}",
        f"  Total     : {report.total}",
    ]
    if not report.written:
        lines.append("  (collection unchanged)")
    return "\n".join(lines)


def render_links(links: List[str]) -> str:
    if not links:
        return "(no item links found)"
    width = len(str(len(links)))
    return "\n".join(f"  {i:>{width}}. {link}" for i, link in enumerate(links, start=1))


def render_product(product: Dict[str, Any]) -> str:
    """One-line summary: item number, name and price value."""
    price = product.get("price")
    value = price.get("value", "-") if isinstance(price, dict) else price or "-"
    return f"  {product.get('item_number', '-')}  {product.get('product_name', '-')!r}  {value}"
