"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Inscription metrics
inscription_operations = Counter(
    'inscription_operations_total',
    'Inscription lifecycle operations',
    ['operation', 'result']  # inscribe/cancel, success/not_found/unauthorized/rejected/error/partial
)

inscription_latency = Histogram(
    'inscription_operation_latency_seconds',
    'Inscription operation latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Delete committed, counter decrement failed
participant_counter_drift = Counter(
    'participant_counter_drift_total',
    'Cancellations whose participant counter decrement failed after the delete committed'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss/ok/error
)

cache_invalidations = Counter(
    'cache_invalidations_total',
    'Cache invalidation sweeps',
    ['scope', 'result']  # event/all, ok/error
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus exposition of the default registry."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_inscription_operation(operation: str, result: str):
    """Record inscription operation outcome."""
    inscription_operations.labels(operation=operation, result=result).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()


def record_cache_invalidation(scope: str, ok: bool):
    cache_invalidations.labels(scope=scope, result="ok" if ok else "error").inc()
