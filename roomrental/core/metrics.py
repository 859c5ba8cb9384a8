"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking requests by outcome',
    ['outcome']  # created, or the lowercased rejection kind
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking creation latency, lock wait included',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_transitions = Counter(
    'booking_transitions_total',
    'Booking status transition attempts',
    ['target', 'result']  # result: applied, rejected
)

# Room lock metrics
room_lock_wait = Histogram(
    'room_lock_wait_seconds',
    'Time spent waiting for a per-room booking lock',
    ['backend'],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

room_lock_timeouts = Counter(
    'room_lock_timeouts_total',
    'Booking requests that gave up waiting for a room lock'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_lock_fallback = Gauge(
    'redis_lock_fallback_active',
    'Room locking fell back to in-process locks (1=fallback, 0=redis)'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(outcome: str):
    """Record booking attempt. Outcome: created, date_conflict, not_found, ..."""
    booking_attempts.labels(outcome=outcome).inc()


def record_transition(target: str, applied: bool):
    result = "applied" if applied else "rejected"
    booking_transitions.labels(target=target, result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
