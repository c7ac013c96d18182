"""Prometheus instruments for the Content Warehouse API.

Instruments live on the default ``prometheus_client`` registry and are
exposed at ``GET /metrics`` when ``METRICS_ENABLED`` is true.

    warehouse_http_requests_total{method, path, status}
        Requests served, by route template and status code.
    warehouse_http_request_duration_seconds{method, path}
        Request latency.
    cache_requests_total{operation, result}
        Cache-aside lookups; ``result`` is hit, miss, error or bypass.
    store_queries_total{operation, status}
        Statements sent to PostgreSQL; ``status`` is ok or error.

The ``path`` label is the matched route template (``/api/content/{content_id}``)
or ``unmatched``, never the raw URL, so label cardinality stays bounded.
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_LATENCY_BUCKETS: tuple[float, ...] = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

http_requests_total: Counter = Counter(
    "warehouse_http_requests_total",
    "Requests served by the Content Warehouse API.",
    labelnames=["method", "path", "status"],
)

http_request_duration_seconds: Histogram = Histogram(
    "warehouse_http_request_duration_seconds",
    "Time spent serving a request, in seconds.",
    labelnames=["method", "path"],
    buckets=_LATENCY_BUCKETS,
)

cache_requests_total: Counter = Counter(
    "cache_requests_total",
    "Cache-aside lookups by operation and result.",
    labelnames=["operation", "result"],
)

store_queries_total: Counter = Counter(
    "store_queries_total",
    "Store statements executed by operation and status.",
    labelnames=["operation", "status"],
)


def get_metrics_response(registry: CollectorRegistry = REGISTRY) -> tuple[bytes, str]:
    """Render *registry* in the Prometheus text format.

    Returns:
        ``(body, content_type)`` for a plain ``Response``.
    """
    return generate_latest(registry), CONTENT_TYPE_LATEST
