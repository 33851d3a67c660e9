"""Bounded ring buffer of recent record-store operations"""

from collections import Counter, deque
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, Optional

from notion_finance.config import settings


@dataclass(frozen=True)
class OperationRecord:
    operation: str
    success: bool
    duration_ms: float
    retry_count: int = 0
    error_code: Optional[str] = None
    cached: bool = False


@dataclass(frozen=True)
class MetricsSnapshot:
    total_operations: int
    success_rate: float  # percent
    average_latency_ms: float
    total_retries: int
    cache_hits: int
    errors_by_code: Dict[str, int]
    cache_size: int
    cache_capacity: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MetricsRing:
    """Keeps the last ``capacity`` operation records, dropping the oldest"""

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity if capacity is not None else settings.metrics_buffer_size
        self._records: Deque[OperationRecord] = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._records)

    def record(self, entry: OperationRecord) -> None:
        self._records.append(entry)

    def snapshot(self, cache_size: int = 0, cache_capacity: int = 0) -> MetricsSnapshot:
        records = list(self._records)
        total = len(records)
        successes = sum(1 for r in records if r.success)
        errors = Counter(r.error_code for r in records if not r.success and r.error_code)

        return MetricsSnapshot(
            total_operations=total,
            success_rate=round(successes / total * 100, 2) if total else 100.0,
            average_latency_ms=round(sum(r.duration_ms for r in records) / total, 2) if total else 0.0,
            total_retries=sum(r.retry_count for r in records),
            cache_hits=sum(1 for r in records if r.cached),
            errors_by_code=dict(errors),
            cache_size=cache_size,
            cache_capacity=cache_capacity,
        )
