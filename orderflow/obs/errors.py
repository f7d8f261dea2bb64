"""Error reporting helpers."""

from __future__ import annotations

import logging
import os
from typing import Optional

import sentry_sdk

logger = logging.getLogger("obs")


def init_sentry(dsn: Optional[str] = None, env: Optional[str] = None) -> None:
    """Initialize Sentry if a DSN is configured."""
    dsn = dsn or os.getenv("ERROR_DSN")
    if not dsn:
        logger.info("ERROR_DSN not set; error sink disabled")
        return
    sentry_sdk.init(dsn=dsn, environment=env, send_default_pii=False)


def capture_exception(exc: Exception, tenant: Optional[str] = None) -> None:
    """Forward ``exc`` to Sentry tagged with the restaurant, else log it."""
    if not sentry_sdk.get_client().is_active():
        logger.exception("Unhandled exception", exc_info=exc, extra={"tenant": tenant})
        return
    with sentry_sdk.new_scope() as scope:
        if tenant:
            scope.set_tag("tenant", tenant)
        sentry_sdk.capture_exception(exc)
