"""Structured JSON logging for the API and the lifecycle core.

Log calls pass their context through ``extra`` (``tenant``, ``user``,
``order_id`` ...); the formatter lifts those attributes into the JSON line.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import current_request_id

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)
# 10 digit local numbers and +country formatted ones
PHONE_RE = re.compile(r"(?:\+\d{1,3}[\s-]?)?\b\d{10}\b")

CONTEXT_FIELDS = (
    "tenant",
    "user",
    "order_id",
    "route",
    "status",
    "latency_ms",
)


def _redact_pii(text: str) -> str:
    """Mask customer emails and phone numbers that end up in free text."""
    return PHONE_RE.sub("***", EMAIL_RE.sub("***", text))


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = current_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
        }
        for name in CONTEXT_FIELDS:
            data[name] = getattr(record, name, None)
        data["msg"] = _redact_pii(record.getMessage())
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send every logger through a single JSON handler on stderr."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
