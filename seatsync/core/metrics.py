"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Allocation metrics
allocation_outcomes = Counter(
    'seatsync_allocation_outcomes_total',
    'Register/cancel outcomes',
    ['operation', 'status']  # register: registered, waitlisted, rejected; cancel: ...
)

allocation_latency = Histogram(
    'seatsync_allocation_latency_seconds',
    'Allocation transaction latency including retries',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

allocation_retries = Counter(
    'seatsync_allocation_retries_total',
    'Allocation transaction retries',
    ['reason']  # version_conflict, integrity_error, operational_error
)

promotions = Counter(
    'seatsync_waitlist_promotions_total',
    'Waitlist entries promoted into a freed seat'
)

# Cache metrics
cache_operations = Counter(
    'seatsync_cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_allocation(operation: str, status: str):
    """Record an allocation outcome, e.g. ("register", "waitlisted")."""
    allocation_outcomes.labels(operation=operation, status=status).inc()


def record_retry(reason: str):
    allocation_retries.labels(reason=reason).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
