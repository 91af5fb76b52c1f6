"""Bounded executor: runs async jobs with an in-flight ceiling, settle-all.

Jobs are zero-argument coroutine functions.  They are admitted in order;
once ``limit`` jobs are in flight, admission waits until one of them
finishes.  A failing job never cancels its siblings: every job is awaited
and its result recorded as an :class:`Outcome`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]

FULFILLED = "fulfilled"
REJECTED = "rejected"


@dataclass
class Outcome:
    """Settled result of one job."""

    status: str
    value: Any = None
    reason: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == FULFILLED


async def _call(job: Job) -> Any:
    return await job()


async def run_bounded(jobs: Sequence[Job], limit: int) -> List[Outcome]:
    """Run *jobs* with at most *limit* in flight and settle them all.

    Returns:
        One :class:`Outcome` per job, in the order the jobs were given.

    Raises:
        ValueError: If *limit* is smaller than 1.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    tasks: List[asyncio.Task] = []
    running: set[asyncio.Task] = set()

    for job in jobs:
        task = asyncio.ensure_future(_call(job))
        tasks.append(task)
        running.add(task)

        if len(running) >= limit:
            _, running = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)

    results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes: List[Outcome] = []
    for result in results:
        if isinstance(result, BaseException):
            outcomes.append(Outcome(status=REJECTED, reason=result))
        else:
            outcomes.append(Outcome(status=FULFILLED, value=result))
    return outcomes


def fulfilled_values(outcomes: Sequence[Outcome]) -> List[Any]:
    """Return the non-``None`` values of fulfilled outcomes, logging rejections."""
    values: List[Any] = []
    for outcome in outcomes:
        if outcome.ok:
            if outcome.value is not None:
                values.append(outcome.value)
        else:
            logger.error("Task failed: %r", outcome.reason)
    return values
