"""Global request throttle: a FIFO delay queue with a fixed minimum interval"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from notion_finance.config import settings


class Throttle:
    """Release callers one at a time, at least ``1 / requests_per_second`` apart.

    Waiters queue on an ``asyncio.Lock`` (first come, first served) and the
    lock is held across the wait, so unused capacity never turns into a burst.
    """

    def __init__(
        self,
        requests_per_second: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        rps = requests_per_second if requests_per_second is not None else settings.requests_per_second
        if rps <= 0:
            raise ValueError("requests_per_second must be positive")
        self.min_interval = 1.0 / rps
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_release: Optional[float] = None

    async def acquire(self) -> float:
        """Wait for the next slot. Returns the seconds spent waiting."""
        async with self._lock:
            now = self._clock()
            wait = 0.0
            if self._last_release is not None:
                wait = max(self._last_release + self.min_interval - now, 0.0)
            if wait > 0:
                await self._sleep(wait)
            self._last_release = now + wait
            return wait
