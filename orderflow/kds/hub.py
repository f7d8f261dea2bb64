"""Registry of open display sessions per restaurant."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from redis.exceptions import RedisError

from ..routes_metrics import kds_sessions
from . import broadcast
from .refresh import RefreshCoordinator

logger = logging.getLogger("kds")


class BoardHub:
    """Fan board invalidations out to every session of a restaurant.

    With a Redis client the hub also publishes each invalidation and, while
    a restaurant has at least one local session, listens for invalidations
    coming from other processes.
    """

    def __init__(self, redis: Any = None) -> None:
        self.redis = redis
        self.instance_id = uuid.uuid4().hex
        self._sessions: dict[str, set[RefreshCoordinator]] = defaultdict(set)
        self._listeners: dict[str, asyncio.Task] = {}

    def sessions(self, restaurant_id: str) -> int:
        return len(self._sessions.get(restaurant_id, ()))

    async def attach(self, restaurant_id: str, coordinator: RefreshCoordinator) -> None:
        self._sessions[restaurant_id].add(coordinator)
        kds_sessions.inc()
        if self.redis is not None and restaurant_id not in self._listeners:
            self._listeners[restaurant_id] = asyncio.create_task(
                broadcast.listen(self.redis, restaurant_id, self),
                name=f"kds-listen-{restaurant_id}",
            )

    async def detach(self, restaurant_id: str, coordinator: RefreshCoordinator) -> None:
        sessions = self._sessions.get(restaurant_id)
        if not sessions or coordinator not in sessions:
            return
        sessions.discard(coordinator)
        kds_sessions.dec()
        if sessions:
            return
        del self._sessions[restaurant_id]
        listener = self._listeners.pop(restaurant_id, None)
        if listener is not None:
            listener.cancel()
            await asyncio.gather(listener, return_exceptions=True)

    @asynccontextmanager
    async def session(
        self, restaurant_id: str, coordinator: RefreshCoordinator
    ) -> AsyncIterator[RefreshCoordinator]:
        """Run ``coordinator`` for the duration of a display session."""
        await self.attach(restaurant_id, coordinator)
        try:
            await coordinator.start()
            yield coordinator
        finally:
            await coordinator.stop()
            await self.detach(restaurant_id, coordinator)

    async def invalidate(
        self, restaurant_id: str, reason: str = "mutation", publish: bool = True
    ) -> None:
        """Refetch every queue of every session showing ``restaurant_id``."""
        coordinators = list(self._sessions.get(restaurant_id, ()))
        if coordinators:
            await asyncio.gather(*(c.refetch_all(reason) for c in coordinators))
        if publish and self.redis is not None:
            try:
                await broadcast.publish(self.redis, restaurant_id, reason, self.instance_id)
            except RedisError:
                logger.warning("could not publish board invalidation", exc_info=True)

    async def close(self) -> None:
        listeners = list(self._listeners.values())
        self._listeners.clear()
        for task in listeners:
            task.cancel()
        await asyncio.gather(*listeners, return_exceptions=True)
