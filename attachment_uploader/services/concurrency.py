"""Bounded asyncio worker pool for upload tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class ConcurrencyScheduler:
    """Runs submitted coroutines with at most ``capacity`` in flight.

    Admission is FIFO (asyncio.Semaphore wakes waiters in order). Exceptions
    raised by a task are logged here and never propagate to ``on_idle()``.
    """

    def __init__(self, capacity: int = 3):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._tasks: set[asyncio.Task] = set()
        self._active = 0
        self.max_observed_concurrency = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active(self) -> int:
        """Tasks currently holding a slot."""
        return self._active

    @property
    def pending(self) -> int:
        """Tasks accepted but still waiting for a slot."""
        return len(self._tasks) - self._active

    def submit(self, factory: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """Accept a task; it starts as soon as a slot is free."""
        task = asyncio.create_task(self._run(factory))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def on_idle(self) -> None:
        """Wait until every accepted task has finished."""
        while self._tasks:
            # wait() leaves the tasks running if this waiter is cancelled
            await asyncio.wait(set(self._tasks))

    async def _run(self, factory: Callable[[], Awaitable[Any]]) -> Any:
        async with self._semaphore:
            self._active += 1
            self.max_observed_concurrency = max(self.max_observed_concurrency, self._active)
            try:
                return await factory()
            except Exception as e:
                logger.error("Scheduled task failed: %s", e)
                return None
            finally:
                self._active -= 1
