"""Bounded concurrency for fan-out stages.

``AsyncLimiter`` caps the number of in-flight calls with an
``asyncio.Semaphore`` and optionally spaces call starts by ``min_interval``
seconds. Each fan-out stage owns its own limiter instance.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class AsyncLimiter:
    """Concurrency cap plus minimum spacing between call starts.

    Args:
        max_concurrent: Maximum number of calls running at once
        min_interval: Minimum seconds between two call starts (0 disables spacing)
        name: Label used in log messages
    """

    def __init__(self, max_concurrent: int, min_interval: float = 0.0, name: str = "limiter"):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.max_concurrent = max_concurrent
        self.min_interval = min_interval
        self.name = name
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._spacing_lock = asyncio.Lock()
        self._last_start: Optional[float] = None
        self.active = 0
        self.peak_active = 0

    async def _wait_for_slot_start(self) -> None:
        if not self.min_interval:
            return
        async with self._spacing_lock:
            now = time.monotonic()
            if self._last_start is not None:
                wait = self._last_start + self.min_interval - now
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_start = time.monotonic()

    async def run(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``func(*args, **kwargs)`` once a slot is free."""
        async with self._semaphore:
            await self._wait_for_slot_start()
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
            try:
                return await func(*args, **kwargs)
            finally:
                self.active -= 1

    async def map(self, func: Callable[[T], Awaitable[R]], items: Iterable[T]) -> List[R]:
        """Run ``func`` over ``items`` under the limiter, returning results in input order.

        The first exception cancels the tasks still pending and is re-raised.
        """
        tasks = [asyncio.create_task(self.run(func, item)) for item in items]
        if not tasks:
            return []

        logger.debug(
            f"{self.name}: scheduling {len(tasks)} tasks "
            f"(max_concurrent={self.max_concurrent}, min_interval={self.min_interval:.3f}s)"
        )
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
