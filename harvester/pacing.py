"""Jittered delays used to keep the request rate against the catalog low."""

from __future__ import annotations

import asyncio
import random


async def random_pause(low: float, high: float) -> float:
    """Sleep for a random number of seconds in ``[low, high]`` and return it."""
    if high < low:
        low, high = high, low
    delay = random.uniform(low, high) if high > 0 else 0.0
    await asyncio.sleep(delay)
    return delay
