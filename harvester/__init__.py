"""Catalog harvester: incremental crawl-and-enrich pipeline for product listings."""

__version__ = "0.1.0"
