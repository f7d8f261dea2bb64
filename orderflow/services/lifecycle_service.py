"""Order lifecycle service.

The single entry point kitchen and admin surfaces use to move orders through
their statuses and to read the per-status queues. It is also the only place
where store failures are translated into the lifecycle error taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Mapping, TypeVar

from ..domain import (
    ACTIVE_STATUSES,
    ConflictError,
    IllegalTransition,
    LifecycleError,
    Order,
    OrderNotFound,
    OrderStatus,
    StatusChange,
    StorageError,
    validate,
)
from ..domain.order import utcnow
from ..kds.hub import BoardHub
from ..kds.partition import PageSpec, QueueView, partition
from ..repos.orders_repo import OrdersRepo
from ..routes_metrics import (
    kds_queue_depth,
    order_transition_rejections_total,
    order_transitions_total,
    storage_retries_total,
)

logger = logging.getLogger("lifecycle")

T = TypeVar("T")

DEFAULT_RETRY_BACKOFF = 0.2


class OrderLifecycleService:
    """Validate, persist and broadcast order status changes."""

    def __init__(
        self,
        store: OrdersRepo,
        hub: BoardHub | None = None,
        clock: Callable[[], datetime] = utcnow,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
    ) -> None:
        self.store = store
        self.hub = hub
        self.clock = clock
        self.retry_backoff = retry_backoff

    async def _call(self, op: Callable[[], Awaitable[T]]) -> T:
        """Run a store call, retrying exactly once on :class:`StorageError`."""
        try:
            return await op()
        except StorageError as exc:
            storage_retries_total.inc()
            logger.warning("order store failed, retrying once: %s", exc)
            await asyncio.sleep(self.retry_backoff)
            return await op()

    async def _load(self, restaurant_id: str, order_id: str) -> Order:
        order = await self._call(lambda: self.store.get_order(restaurant_id, order_id))
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _record_depth(self, restaurant_id: str, status: OrderStatus, count: int) -> None:
        kds_queue_depth.labels(tenant=restaurant_id, status=status.value).set(count)

    async def _refresh_board(self, restaurant_id: str, reason: str) -> None:
        if self.hub is not None:
            await self.hub.invalidate(restaurant_id, reason=reason)

    async def request_status_change(
        self,
        restaurant_id: str,
        order_id: str,
        target: OrderStatus,
        actor: str | None = None,
    ) -> Order:
        """Move ``order_id`` to ``target`` and return the committed order.

        The transition is validated against the status that is persisted at
        the time of the call. If another terminal commits first the store
        reports a conflict; the order is reloaded and the request fails with
        :class:`IllegalTransition` from the fresh status, chained to the
        conflict. Nothing is re-applied on top of a state the operator did
        not see. The board is refetched whatever the outcome.
        """

        extra = {"tenant": restaurant_id, "order_id": order_id, "user": actor}
        try:
            current = await self._load(restaurant_id, order_id)
            validate(current.status, target)
            try:
                updated = await self._call(
                    lambda: self.store.update_status(
                        restaurant_id,
                        order_id,
                        target,
                        expected_current=current.status,
                        actor=actor,
                        at=self.clock(),
                    )
                )
            except ConflictError as conflict:
                fresh = await self._load(restaurant_id, order_id)
                logger.info(
                    "conflicting update on order: expected %s, found %s",
                    current.status.value,
                    fresh.status.value,
                    extra=extra,
                )
                raise IllegalTransition(fresh.status, target) from conflict
        except LifecycleError as exc:
            order_transition_rejections_total.labels(code=exc.code).inc()
            logger.info("status change rejected: %s", exc.message, extra=extra)
            await self._refresh_board(restaurant_id, reason="rejected")
            raise

        order_transitions_total.labels(src=current.status.value, dst=target.value).inc()
        logger.info(
            "order moved %s -> %s", current.status.value, target.value, extra=extra
        )
        await self._refresh_board(restaurant_id, reason="mutation")
        return updated

    async def list_queues(
        self,
        restaurant_id: str,
        status_filters: Iterable[OrderStatus] | None = None,
        page_specs: Mapping[OrderStatus, PageSpec] | None = None,
    ) -> dict[OrderStatus, QueueView]:
        """Return one paginated view per requested active status."""

        statuses = list(ACTIVE_STATUSES if status_filters is None else status_filters)
        orders = await self._call(
            lambda: self.store.list_active_orders(restaurant_id, statuses)
        )
        views = partition(orders, statuses, page_specs)
        for status, view in views.items():
            self._record_depth(restaurant_id, status, view.total_count)
        return views

    async def fetch_queue(
        self, restaurant_id: str, status: OrderStatus, spec: PageSpec
    ) -> QueueView:
        """Fetch a single queue; the shape a display session polls with."""

        views = await self.list_queues(restaurant_id, [status], {status: spec})
        return views[status]

    async def get_order(self, restaurant_id: str, order_id: str) -> Order:
        return await self._load(restaurant_id, order_id)

    async def history(self, restaurant_id: str, order_id: str) -> list[StatusChange]:
        return await self._call(lambda: self.store.history(restaurant_id, order_id))

    async def queue_counts(self, restaurant_id: str) -> dict[OrderStatus, int]:
        """Number of orders currently waiting in each active status."""

        orders = await self._call(lambda: self.store.list_active_orders(restaurant_id))
        counts = {status: 0 for status in ACTIVE_STATUSES}
        for order in orders:
            if order.status in counts:
                counts[order.status] += 1
        for status, count in counts.items():
            self._record_depth(restaurant_id, status, count)
        return counts
