"""Utilities for tenant-specific database engines.

The DSN template comes from ``Settings.postgres_tenant_dsn_template`` and is
expected to include a ``{tenant_id}`` placeholder. For example::

    postgresql+asyncpg://u:p@host:5432/tenant_{tenant_id}

Use :func:`build_dsn` to render a DSN for a tenant and :class:`TenantEngines`
to keep one :class:`~sqlalchemy.ext.asyncio.AsyncEngine` per tenant.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import get_settings
from ..models_tenant import Base
from ..obs import add_query_logger

logger = logging.getLogger(__name__)


def build_dsn(tenant_id: str, template: str | None = None) -> str:
    """Return a DSN for ``tenant_id`` based on the configured template."""
    template = template or get_settings().postgres_tenant_dsn_template
    if "{tenant_id}" not in template:
        raise ValueError("DSN template must contain {tenant_id}")
    return template.format(tenant_id=tenant_id)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tenant tables on ``engine`` if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class TenantEngines:
    """Lazily created engines, one per tenant.

    With ``auto_create`` set the tenant schema is created the first time an
    engine is requested, which is what local SQLite setups and tests want.
    """

    def __init__(self, template: str | None = None, auto_create: bool = False) -> None:
        self.template = template
        self.auto_create = auto_create
        self._engines: dict[str, AsyncEngine] = {}
        self._makers: dict[str, async_sessionmaker[AsyncSession]] = {}
        self._lock = asyncio.Lock()

    async def engine(self, tenant_id: str) -> AsyncEngine:
        async with self._lock:
            engine = self._engines.get(tenant_id)
            if engine is None:
                engine = create_async_engine(build_dsn(tenant_id, self.template))
                add_query_logger(engine, tenant_id)
                if self.auto_create:
                    await create_schema(engine)
                self._engines[tenant_id] = engine
                self._makers[tenant_id] = async_sessionmaker(
                    engine, expire_on_commit=False, class_=AsyncSession
                )
                logger.info("engine ready for tenant %s", tenant_id)
            return engine

    @asynccontextmanager
    async def session(self, tenant_id: str) -> AsyncGenerator[AsyncSession, None]:
        """Yield an :class:`AsyncSession` bound to ``tenant_id``'s engine."""
        await self.engine(tenant_id)
        async with self._makers[tenant_id]() as session:
            yield session

    async def dispose(self) -> None:
        async with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
            self._makers.clear()
        for engine in engines:
            await engine.dispose()


__all__ = ["build_dsn", "create_schema", "TenantEngines"]
