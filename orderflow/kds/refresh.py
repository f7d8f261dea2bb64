"""Live refresh coordination for one kitchen display session.

Each status queue polls on its own timer so a slow fetch for one column
never delays the others. Mutations trigger :meth:`RefreshCoordinator.refetch_all`
out of band. Every fetch is numbered per queue; a response is applied only
if no newer fetch of that queue has been applied already, so a slow poll
cannot overwrite the result of a later refetch.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable

from ..domain import ACTIVE_STATUSES, OrderStatus
from ..domain.order import utcnow
from ..routes_metrics import kds_refetch_total
from .board import BoardCard, view_payload
from .partition import DEFAULT_PAGE_SIZE, PageSpec, QueueView

logger = logging.getLogger("kds")

Fetch = Callable[[OrderStatus, PageSpec], Awaitable[QueueView]]
Listener = Callable[[QueueView], Awaitable[None]]

DEFAULT_INTERVAL = 10.0


class RefreshCoordinator:
    """Drive per-queue polling and full-board refetches for one session."""

    def __init__(
        self,
        fetch: Fetch,
        statuses: Iterable[OrderStatus] = ACTIVE_STATUSES,
        interval: float = DEFAULT_INTERVAL,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._fetch = fetch
        self.statuses = tuple(dict.fromkeys(statuses))
        self.interval = interval
        self.clock = clock
        self._pages = {status: PageSpec(1, page_size) for status in self.statuses}
        self._views: dict[OrderStatus, QueueView] = {}
        self._started_gen = {status: 0 for status in self.statuses}
        self._applied_gen = {status: 0 for status in self.statuses}
        self._tasks: dict[OrderStatus, asyncio.Task] = {}
        self._listeners: list[Listener] = []

    # -------------------- session lifecycle --------------------

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    async def start(self) -> None:
        """Spawn one polling task per queue. Idempotent."""
        for status in self.statuses:
            task = self._tasks.get(status)
            if task is None or task.done():
                self._tasks[status] = asyncio.create_task(
                    self._poll(status), name=f"kds-poll-{status.value}"
                )

    async def stop(self) -> None:
        """Cancel every polling timer and wait for the tasks to finish."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "RefreshCoordinator":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # -------------------- fetching --------------------

    async def _poll(self, status: OrderStatus) -> None:
        while True:
            try:
                await self.refresh(status, trigger="poll")
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("poll failed for %s queue", status.value, exc_info=True)
            await asyncio.sleep(self.interval)

    async def refresh(self, status: OrderStatus, trigger: str = "manual") -> QueueView | None:
        """Fetch ``status``'s current page and apply it unless superseded.

        Returns the view that is current after the call.
        """
        if status not in self._pages:
            raise ValueError(f"{status.value!r} is not shown in this session")
        self._started_gen[status] += 1
        generation = self._started_gen[status]
        spec = self._pages[status]

        view = await self._fetch(status, spec)
        kds_refetch_total.labels(trigger=trigger).inc()

        if generation <= self._applied_gen[status] or spec != self._pages[status]:
            logger.debug("discarding stale %s view (gen %d)", status.value, generation)
            return self._views.get(status)
        self._applied_gen[status] = generation
        self._views[status] = view
        for listener in list(self._listeners):
            await listener(view)
        return view

    async def refetch_all(self, reason: str = "mutation") -> None:
        """Refetch every queue concurrently; failures are logged per queue."""
        results = await asyncio.gather(
            *(self.refresh(status, trigger=reason) for status in self.statuses),
            return_exceptions=True,
        )
        for status, result in zip(self.statuses, results):
            if isinstance(result, Exception):
                logger.warning(
                    "refetch failed for %s queue",
                    status.value,
                    exc_info=(type(result), result, result.__traceback__),
                )

    async def set_page(self, status: OrderStatus, page: int) -> QueueView | None:
        """Move one queue to ``page`` and refetch only that queue."""
        if status not in self._pages:
            raise ValueError(f"{status.value!r} is not shown in this session")
        self._pages[status] = PageSpec(page, self._pages[status].size)
        return await self.refresh(status, trigger="page")

    # -------------------- reading --------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every applied view; returns an unsubscriber."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def page(self, status: OrderStatus) -> PageSpec:
        return self._pages[status]

    def view(self, status: OrderStatus) -> QueueView | None:
        return self._views.get(status)

    def board(self, now: datetime | None = None) -> dict[OrderStatus, list[BoardCard]]:
        """Return the cards of every loaded queue with urgency as of ``now``."""
        now = now or self.clock()
        return {
            status: [BoardCard.at(order, now) for order in view.orders]
            for status, view in self._views.items()
        }

    def snapshot(self, now: datetime | None = None) -> dict[str, Any]:
        """JSON-ready board, queues in display order."""
        now = now or self.clock()
        return {
            status.value: view_payload(self._views[status], now)
            for status in self.statuses
            if status in self._views
        }
