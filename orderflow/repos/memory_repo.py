"""In-process order store.

Used by the demo app and the test-suite. Reads return a snapshot taken
before the simulated I/O suspension, which mirrors a database round trip:
a concurrent writer may commit while the reader is still "on the wire".
Writes are compare-and-set under an :class:`asyncio.Lock`.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from ..domain import (
    ConflictError,
    Order,
    OrderLine,
    OrderNotFound,
    OrderStatus,
    StatusChange,
    is_terminal,
)
from ..domain.order import utcnow
from .orders_repo import OrdersRepo


class InMemoryOrdersRepo(OrdersRepo):
    def __init__(self, latency: float = 0.0) -> None:
        self.latency = latency
        self._orders: dict[str, dict[str, Order]] = defaultdict(dict)
        self._history: dict[tuple[str, str], list[StatusChange]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def _io(self) -> None:
        await asyncio.sleep(self.latency)

    async def create_order(
        self,
        restaurant_id: str,
        table_number: int,
        lines: Sequence[OrderLine],
        total: Decimal,
        customer_name: str | None = None,
        notes: str | None = None,
        at: datetime | None = None,
        order_id: str | None = None,
    ) -> Order:
        stamp = at or utcnow()
        order = Order(
            id=order_id or uuid.uuid4().hex,
            restaurant_id=restaurant_id,
            table_number=table_number,
            items=tuple(lines),
            total=Decimal(total),
            status=OrderStatus.PENDING,
            created_at=stamp,
            updated_at=stamp,
            customer_name=customer_name,
            notes=notes,
        )
        async with self._lock:
            self._orders[restaurant_id][order.id] = order
        await self._io()
        return order

    async def get_order(self, restaurant_id: str, order_id: str) -> Order | None:
        order = self._orders[restaurant_id].get(order_id)
        await self._io()
        return order

    async def list_active_orders(
        self,
        restaurant_id: str,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        wanted = set(statuses) if statuses is not None else None
        orders = [
            order
            for order in self._orders[restaurant_id].values()
            if not is_terminal(order.status)
            and (wanted is None or order.status in wanted)
        ]
        await self._io()
        return orders

    async def update_status(
        self,
        restaurant_id: str,
        order_id: str,
        new_status: OrderStatus,
        expected_current: OrderStatus | None = None,
        actor: str | None = None,
        at: datetime | None = None,
    ) -> Order:
        async with self._lock:
            current = self._orders[restaurant_id].get(order_id)
            if current is None:
                raise OrderNotFound(order_id)
            if expected_current is not None and current.status is not expected_current:
                raise ConflictError(order_id, expected_current, current.status)
            updated = current.transition(new_status, at)
            self._orders[restaurant_id][order_id] = updated
            self._history[restaurant_id, order_id].append(
                StatusChange(
                    order_id=order_id,
                    from_status=current.status,
                    to_status=updated.status,
                    at=updated.updated_at,
                    actor=actor,
                )
            )
        await self._io()
        return updated

    async def history(self, restaurant_id: str, order_id: str) -> list[StatusChange]:
        if order_id not in self._orders[restaurant_id]:
            raise OrderNotFound(order_id)
        entries = list(self._history[restaurant_id, order_id])
        await self._io()
        return entries
