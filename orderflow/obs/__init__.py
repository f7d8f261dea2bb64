"""Observability helpers."""

from .errors import capture_exception, init_sentry  # re-export
from .logging import configure_logging
from .queries import add_query_logger

__all__ = ["capture_exception", "configure_logging", "init_sentry", "add_query_logger"]
