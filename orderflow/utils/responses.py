"""Response envelopes shared by every route and error handler."""

from typing import Any, Dict

from ..middlewares.request_id import current_request_id


def ok(data: Any) -> Dict[str, Any]:
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Return an error envelope carrying the current request id.

    ``code`` is the HTTP status for framework errors and a lifecycle code
    such as ``ILLEGAL_TRANSITION`` for domain errors.
    """
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"ok": False, "request_id": current_request_id(), "error": error}
