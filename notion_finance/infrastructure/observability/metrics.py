"""Prometheus metrics for record-store health, cache efficiency and recommendation outcomes"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Record store metrics
store_operation_counter = Counter(
    "record_store_operations_total",
    "Record store operations by outcome",
    ["operation", "outcome"],  # success | <error code>
)

store_retry_counter = Counter(
    "record_store_retries_total",
    "Record store retry attempts",
    ["operation", "error"],
)

store_latency_histogram = Histogram(
    "record_store_operation_seconds",
    "Record store operation latency including retries",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

cache_counter = Counter(
    "record_store_cache_total",
    "Read cache lookups",
    ["operation", "result"],  # hit | miss
)

# Decision support metrics
recommendation_counter = Counter(
    "spending_recommendation_total",
    "Spending recommendations produced",
    ["outcome"],  # approve | deny
)

confidence_bucket_counter = Counter(
    "spending_recommendation_confidence_bucket",
    "Recommendation confidence by bucket",
    ["bucket"],  # 0-49, 50-69, 70-84, 85-100
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_store_operation(
    operation: str, success: bool, duration_seconds: float, error_code: Optional[str] = None
) -> None:
    """Record one logical record-store operation (all attempts included)"""
    store_operation_counter.labels(operation=operation, outcome="success" if success else error_code or "error").inc()
    store_latency_histogram.labels(operation=operation).observe(duration_seconds)


def record_retry(operation: str, error_code: str) -> None:
    store_retry_counter.labels(operation=operation, error=error_code).inc()


def record_cache_lookup(operation: str, hit: bool) -> None:
    cache_counter.labels(operation=operation, result="hit" if hit else "miss").inc()


def record_recommendation(should_approve: bool, confidence: int) -> None:
    """Record recommendation outcome and confidence distribution"""
    recommendation_counter.labels(outcome="approve" if should_approve else "deny").inc()

    if confidence < 50:
        bucket = "0-49"
    elif confidence < 70:
        bucket = "50-69"
    elif confidence < 85:
        bucket = "70-84"
    else:
        bucket = "85-100"

    confidence_bucket_counter.labels(bucket=bucket).inc()
