"""Resilient record-store client

The only path the services use to reach the store. Every HTTP call is
throttled globally, raced against a timeout and retried with backoff; read
results are cached for a bounded time; every logical operation lands in the
metrics ring and in Prometheus.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from notion_finance.config import settings
from notion_finance.domain.exceptions import FinanceServiceError
from notion_finance.domain.properties import Record
from notion_finance.infrastructure.clients.notion import NotionTransport
from notion_finance.infrastructure.observability.metrics import (
    record_cache_lookup,
    record_retry,
    record_store_operation,
)
from notion_finance.infrastructure.resilience.cache import TTLCache
from notion_finance.infrastructure.resilience.retry import RetryExecutor
from notion_finance.infrastructure.resilience.ring import MetricsRing, MetricsSnapshot, OperationRecord
from notion_finance.infrastructure.resilience.throttle import Throttle

logger = logging.getLogger(__name__)

T = TypeVar("T")

Filter = Dict[str, Any]
Sorts = List[Dict[str, Any]]
RetryCallback = Callable[[int, FinanceServiceError, float], None]


class RecordStoreClient:
    """Query, create, update and retrieve store records with retries, throttling and caching"""

    def __init__(
        self,
        transport: Optional[NotionTransport] = None,
        executor: Optional[RetryExecutor] = None,
        throttle: Optional[Throttle] = None,
        cache: Optional[TTLCache] = None,
        ring: Optional[MetricsRing] = None,
        cache_enabled: Optional[bool] = None,
        sweep_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport if transport is not None else NotionTransport()
        self.executor = executor if executor is not None else RetryExecutor()
        self.throttle = throttle if throttle is not None else Throttle()
        self.cache = cache if cache is not None else TTLCache()
        self.ring = ring if ring is not None else MetricsRing()
        self.cache_enabled = settings.cache_enabled if cache_enabled is None else cache_enabled
        self.sweep_interval = (
            sweep_interval if sweep_interval is not None else settings.cache_sweep_interval_seconds
        )
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None

    # Lifecycle

    def start(self) -> None:
        """Launch the background cache sweep. Must be called inside a running loop."""
        if self.cache_enabled and self._sweeper is None:
            self._sweeper = asyncio.create_task(self.cache.run_sweeper(self.sweep_interval))

    async def aclose(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        await self.transport.aclose()

    # Public operations

    async def query_records(
        self, collection_id: str, filter: Optional[Filter] = None, sorts: Optional[Sorts] = None
    ) -> List[Record]:
        """Return every record matching ``filter``, following pagination to the end"""

        async def fetch(on_retry: RetryCallback) -> List[Record]:
            records: List[Record] = []
            cursor: Optional[str] = None
            while True:
                page = await self._attempt(
                    lambda: self.transport.query_database(collection_id, filter, sorts, start_cursor=cursor),
                    "query_records",
                    on_retry,
                )
                records.extend(page.get("results") or [])
                cursor = page.get("next_cursor")
                if not page.get("has_more") or not cursor:
                    return records

        params = {"collection_id": collection_id, "filter": filter, "sorts": sorts}
        return await self._cached_read("query_records", params, fetch)

    async def get_record(self, record_id: str, use_cache: bool = True) -> Record:
        """Fetch one record. ``use_cache=False`` always reads through to the store."""

        async def fetch(on_retry: RetryCallback) -> Record:
            return await self._attempt(lambda: self.transport.retrieve_page(record_id), "get_record", on_retry)

        if not use_cache:
            record = await self._observed("get_record", fetch)
            if self.cache_enabled:
                self.cache.set(TTLCache.make_key("get_record", {"record_id": record_id}), record)
            return record
        return await self._cached_read("get_record", {"record_id": record_id}, fetch)

    async def get_collection_schema(self, collection_id: str) -> Dict[str, Any]:
        async def fetch(on_retry: RetryCallback) -> Dict[str, Any]:
            return await self._attempt(
                lambda: self.transport.retrieve_database(collection_id), "get_collection_schema", on_retry
            )

        return await self._cached_read("get_collection_schema", {"collection_id": collection_id}, fetch)

    async def create_record(self, collection_id: str, properties: Dict[str, Any]) -> Record:
        """Create a record from encoded properties. Failures always propagate."""

        async def create(on_retry: RetryCallback) -> Record:
            return await self._attempt(
                lambda: self.transport.create_page(collection_id, properties), "create_record", on_retry
            )

        record = await self._observed("create_record", create)
        self._invalidate(collection_id)
        return record

    async def update_record(self, record_id: str, properties: Dict[str, Any]) -> Record:
        """Update a record's properties. Failures always propagate."""

        async def update(on_retry: RetryCallback) -> Record:
            return await self._attempt(
                lambda: self.transport.update_page(record_id, properties), "update_record", on_retry
            )

        record = await self._observed("update_record", update)
        self._invalidate(record_id)
        # Query results listing the record are keyed by its collection, not its id
        parent = record.get("parent") if isinstance(record, dict) else None
        if isinstance(parent, dict) and parent.get("database_id"):
            self._invalidate(parent["database_id"])
        return record

    def get_metrics(self) -> MetricsSnapshot:
        return self.ring.snapshot(cache_size=len(self.cache), cache_capacity=self.cache.max_size)

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Record store cache cleared")

    # Internals

    async def _throttled(self, call: Callable[[], Awaitable[T]]) -> T:
        await self.throttle.acquire()
        return await call()

    async def _attempt(self, call: Callable[[], Awaitable[T]], operation: str, on_retry: RetryCallback) -> T:
        outcome = await self.executor.run(lambda: self._throttled(call), operation, on_retry=on_retry)
        return outcome.value

    async def _cached_read(
        self,
        operation: str,
        params: Dict[str, Any],
        fetch: Callable[[RetryCallback], Awaitable[T]],
    ) -> T:
        if not self.cache_enabled:
            return await self._observed(operation, fetch)

        key = TTLCache.make_key(operation, params)
        cached = self.cache.get(key)
        record_cache_lookup(operation, hit=cached is not None)
        if cached is not None:
            self.ring.record(OperationRecord(operation=operation, success=True, duration_ms=0.0, cached=True))
            return cached

        value = await self._observed(operation, fetch)
        self.cache.set(key, value)
        return value

    async def _observed(self, operation: str, work: Callable[[RetryCallback], Awaitable[T]]) -> T:
        start = self._clock()
        retries = 0

        def on_retry(attempt: int, error: FinanceServiceError, delay: float) -> None:
            nonlocal retries
            retries += 1
            record_retry(operation, error.code)

        try:
            value = await work(on_retry)
        except FinanceServiceError as e:
            self._record(operation, start, success=False, retries=retries, error_code=e.code)
            raise
        self._record(operation, start, success=True, retries=retries)
        return value

    def _record(
        self, operation: str, start: float, success: bool, retries: int, error_code: Optional[str] = None
    ) -> None:
        elapsed = max(self._clock() - start, 0.0)
        self.ring.record(
            OperationRecord(
                operation=operation,
                success=success,
                duration_ms=round(elapsed * 1000, 2),
                retry_count=retries,
                error_code=error_code,
            )
        )
        record_store_operation(operation, success, elapsed, error_code)

    def _invalidate(self, fragment: str) -> None:
        removed = self.cache.invalidate_containing(fragment)
        if removed:
            logger.debug("Invalidated cache entries", extra={"fragment": fragment, "removed": removed})
