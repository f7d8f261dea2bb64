# main.py

"""FastAPI application exposing the order lifecycle to kitchen displays."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.asyncio import from_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import TenantEngines
from .domain import LifecycleError
from .kds import BoardHub
from .middlewares.http_errors import HttpErrorCounterMiddleware
from .middlewares.logging import LoggingMiddleware
from .middlewares.request_id import RequestIdMiddleware
from .obs import capture_exception, configure_logging, init_sentry
from .repos.orders_repo import OrdersRepo
from .repos_sqlalchemy import SqlOrdersRepo
from .routes_kds import router as kds_router
from .routes_metrics import router as metrics_router
from .services import OrderLifecycleService
from .utils.responses import err

logger = logging.getLogger("api")

ERROR_STATUS = {
    "ILLEGAL_TRANSITION": 409,
    "CONFLICT": 409,
    "ORDER_NOT_FOUND": 404,
    "STORAGE_ERROR": 503,
}


def create_app(
    store: OrdersRepo | None = None,
    redis: Any = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Assemble the application.

    Without ``store`` orders live in per-tenant SQL databases built from the
    configured DSN template; tenant tables are created on first use only
    when ``settings.auto_create_schema`` is set. Without ``redis`` a client
    is opened from ``settings.redis_url`` when one is configured.
    """

    settings = settings or get_settings()
    engines: TenantEngines | None = None
    if store is None:
        engines = TenantEngines(
            settings.postgres_tenant_dsn_template,
            auto_create=settings.auto_create_schema,
        )
        store = SqlOrdersRepo(engines)
    hub = BoardHub(redis)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_redis = None
        if hub.redis is None and settings.redis_url:
            owned_redis = hub.redis = from_url(settings.redis_url)
        try:
            yield
        finally:
            await hub.close()
            if owned_redis is not None:
                await owned_redis.aclose()
            if engines is not None:
                await engines.dispose()

    app = FastAPI(title="orderflow", lifespan=lifespan)
    app.state.settings = settings
    app.state.hub = hub
    app.state.lifecycle = OrderLifecycleService(
        store, hub, retry_backoff=settings.storage_retry_backoff_secs
    )

    app.add_middleware(HttpErrorCounterMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(LifecycleError)
    async def lifecycle_error_handler(request: Request, exc: LifecycleError):
        status = ERROR_STATUS.get(exc.code, 400)
        logger.warning(
            exc.message,
            extra={
                "status": status,
                "route": request.url.path,
                "tenant": request.headers.get("X-Tenant-ID"),
                "user": request.headers.get("X-User"),
            },
        )
        return JSONResponse(
            err(exc.code, exc.message, exc.details() or None), status_code=status
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error",
            extra={"status": 500, "route": request.url.path},
        )
        capture_exception(exc, tenant=request.headers.get("X-Tenant-ID"))
        return JSONResponse(err(500, "Internal Server Error"), status_code=500)

    app.include_router(kds_router)
    app.include_router(metrics_router)
    return app


def build_app() -> FastAPI:
    """Application factory for the server: configures logging and Sentry."""

    settings = get_settings()
    configure_logging(settings.log_level)
    init_sentry(settings.error_dsn, settings.environment)
    return create_app(settings=settings)
