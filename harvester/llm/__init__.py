"""Structured-extraction client package."""

from harvester.llm.normalizer import build_prompt, normalize

__all__ = ["normalize", "build_prompt"]
