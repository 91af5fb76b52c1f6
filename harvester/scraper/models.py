"""Data models for the crawl-and-enrich pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

# Placeholder written for every attribute the extraction service could not find.
MISSING = "-"


@dataclass
class ListingPage:
    """Item links and the "more pages" signal parsed from one listing page."""

    links: List[str] = field(default_factory=list)
    has_next: bool = False


@dataclass(frozen=True)
class RawItemContent:
    """Raw markup of the two content regions of one item page.

    An empty fragment means the region was not rendered (or not found) when
    the page was read.
    """

    url: str
    main_fragment: str = ""
    tabs_fragment: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.main_fragment) and bool(self.tabs_fragment)


def _fill_missing(value: Any) -> Any:
    """Recursively replace ``None`` / empty strings with :data:`MISSING`."""
    if value is None:
        return MISSING
    if isinstance(value, str):
        return value if value.strip() else MISSING
    if isinstance(value, dict):
        return {k: _fill_missing(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_fill_missing(v) for v in value]
    return value


@dataclass
class StructuredProduct:
    """A normalized product record, merged with the URL it was scraped from.

    Known sections are kept as attributes; nested sections (``price``,
    ``seller``, ``specifications`` ...) are open mappings so that new keys
    returned by the extraction service pass through untouched.  Unknown
    top-level keys are preserved in ``extra``.
    """

    url: str
    product_name: Any = MISSING
    price: Any = MISSING
    condition: Any = MISSING
    condition_detail: Any = MISSING
    seller: Any = MISSING
    shipping: Any = MISSING
    quantity: Any = MISSING
    size: Any = MISSING
    specifications: Any = MISSING
    item_number: Any = MISSING
    description_url: Any = MISSING
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_FIELDS = (
        "product_name",
        "price",
        "condition",
        "condition_detail",
        "seller",
        "shipping",
        "quantity",
        "size",
        "specifications",
        "item_number",
        "description_url",
    )

    @classmethod
    def from_payload(cls, url: str, payload: Dict[str, Any]) -> "StructuredProduct":
        """Build a record from the service's JSON object.

        The originating *url* always wins over any ``url`` key in the payload.
        """
        known = {k: _fill_missing(payload.get(k)) for k in cls.KNOWN_FIELDS}
        extra = {
            k: _fill_missing(v)
            for k, v in payload.items()
            if k not in cls.KNOWN_FIELDS and k != "url"
        }
        return cls(url=url, extra=extra, **known)

    def to_dict(self) -> Dict[str, Any]:
        """Flat JSON-ready mapping with ``url`` first and no null fields."""
        record: Dict[str, Any] = {"url": self.url}
        for name in self.KNOWN_FIELDS:
            record[name] = _fill_missing(getattr(self, name))
        for key, value in self.extra.items():
            record.setdefault(key, _fill_missing(value))
        return record
