"""Batch pipeline: bounded executor and the merge coordinator."""

from harvester.pipeline.coordinator import RunReport, process_item, run_once
from harvester.pipeline.executor import Outcome, fulfilled_values, run_bounded

__all__ = [
    "run_once",
    "process_item",
    "RunReport",
    "run_bounded",
    "fulfilled_values",
    "Outcome",
]
