"""Request correlation ids."""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Read by the log filter and the error envelope
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Ids forwarded by kitchen terminals or a proxy are trusted only if they look sane
_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(header: str | None) -> str:
    """Return ``header`` when it is a usable id, else a fresh one."""
    if header and _VALID_ID.match(header):
        return header
    return uuid.uuid4().hex


def current_request_id() -> str | None:
    return request_id_ctx.get(None)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the context and echo it as ``X-Request-ID``."""

    async def dispatch(self, request: Request, call_next):
        req_id = resolve_request_id(request.headers.get("X-Request-ID"))
        request.state.request_id = req_id
        token = request_id_ctx.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response
