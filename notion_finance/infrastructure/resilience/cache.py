"""Time-boxed response cache with insertion-order eviction"""

import asyncio
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from notion_finance.config import settings

logger = logging.getLogger(__name__)


class TTLCache:
    """Bounded key/value store whose entries expire ``ttl`` seconds after insertion.

    When full, the oldest inserted entry is evicted first regardless of how
    recently it was read.
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl if ttl is not None else settings.cache_ttl_seconds
        self.max_size = max_size if max_size is not None else settings.cache_max_size
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    @staticmethod
    def make_key(operation: str, params: Dict[str, Any]) -> str:
        return f"{operation}:{json.dumps(params, sort_keys=True, default=str)}"

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when absent or expired"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if self.max_size <= 0:
            return
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = (self._clock() + self.ttl, value)

    def invalidate_containing(self, fragment: str) -> int:
        """Drop every entry whose key mentions ``fragment``. Returns the count removed."""
        stale = [key for key in self._entries if fragment in key]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def sweep_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    async def run_sweeper(
        self,
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Remove expired entries every ``interval`` seconds until cancelled"""
        interval = interval if interval is not None else settings.cache_sweep_interval_seconds
        while True:
            await sleep(interval)
            removed = self.sweep_expired()
            if removed:
                logger.debug("Swept expired cache entries", extra={"removed": removed, "size": len(self)})
