from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_errors_total


def _route_template(request: Request) -> str:
    """Matched route path (``/api/kds/orders/{order_id}``) to bound label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class HttpErrorCounterMiddleware(BaseHTTPMiddleware):
    """Count 4xx/5xx responses per status and route template."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if response.status_code >= 400:
            http_errors_total.labels(
                status=str(response.status_code), route=_route_template(request)
            ).inc()
        return response
