"""Bounded-concurrency scheduling shared by the load and conversion phases."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class UnitResult(Generic[T, R]):
    """Outcome of one unit of work: either a value or the exception it raised."""

    item: T
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        """True when the unit completed without raising."""
        return self.error is None


class BoundedPool:
    """Run coroutines over a queue of items with at most ``limit`` in flight.

    Up to ``limit`` units start immediately; every completion starts the next
    queued unit until the queue is drained. Exceptions raised by a unit are
    captured in its ``UnitResult`` and never cancel sibling units.
    """

    def __init__(self, limit: int, name: str = "pool"):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.name = name
        self.active = 0
        self.peak_active = 0

    async def run(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> List[UnitResult[T, R]]:
        """Process every item and return results in input order."""
        queue = list(items)
        results: List[Optional[UnitResult[T, R]]] = [None] * len(queue)
        pending = {}
        next_index = 0

        def _start(index: int) -> None:
            item = queue[index]
            task = asyncio.ensure_future(self._run_unit(item, worker))
            pending[task] = index

        while next_index < len(queue) and len(pending) < self.limit:
            _start(next_index)
            next_index += 1

        while pending:
            done, _ = await asyncio.wait(pending.keys(), return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                index = pending.pop(task)
                results[index] = task.result()
                if next_index < len(queue):
                    _start(next_index)
                    next_index += 1

        return [result for result in results if result is not None]

    async def _run_unit(self, item: T, worker: Callable[[T], Awaitable[R]]) -> UnitResult[T, R]:
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        if is_debug_enabled(logger):
            logger.debug(
                "Unit started",
                extra=extra_context(event="unit_start", component=self.name, active=self.active),
            )
        try:
            value = await worker(item)
            return UnitResult(item=item, value=value)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return UnitResult(item=item, error=exc)
        finally:
            self.active -= 1


class ProgressCounter:
    """Completion counter shared by concurrent workers.

    Updates go through an asyncio lock so that every report sees a
    consistent ``completed`` value.
    """

    def __init__(self, total: int, label: str = "Loading"):
        self.total = total
        self.label = label
        self._completed = 0
        self._succeeded = 0
        self._failed = 0
        self._lock = asyncio.Lock()

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def succeeded(self) -> int:
        return self._succeeded

    @property
    def failed(self) -> int:
        return self._failed

    async def increment(self, name: str) -> int:
        """Record a successful unit and log progress."""
        async with self._lock:
            self._completed += 1
            self._succeeded += 1
            completed = self._completed
        logger.info("[%d/%d] %s %s", completed, self.total, self.label, name)
        return completed

    async def increment_failed(self, path: str, error: Any) -> int:
        """Record a failed unit and log the failure."""
        async with self._lock:
            self._completed += 1
            self._failed += 1
            completed = self._completed
        logger.warning("[%d/%d] Failed %s: %s", completed, self.total, path, error)
        return completed
