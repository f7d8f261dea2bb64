# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

http_errors_total = Counter(
    "http_errors_total", "HTTP error responses", ["status", "route"]
)

order_transitions_total = Counter(
    "order_transitions_total", "Committed order status transitions", ["src", "dst"]
)
order_transition_rejections_total = Counter(
    "order_transition_rejections_total",
    "Status change requests rejected by the lifecycle service",
    ["code"],
)
storage_retries_total = Counter(
    "storage_retries_total", "Order store calls retried after a storage error"
)
storage_retries_total.inc(0)

kds_refetch_total = Counter(
    "kds_refetch_total", "Kitchen display queue fetches", ["trigger"]
)
kds_sessions = Gauge("kds_sessions", "Open kitchen display sessions")
kds_sessions.set(0)
kds_queue_depth = Gauge(
    "kds_queue_depth", "Orders waiting per status", ["tenant", "status"]
)

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
