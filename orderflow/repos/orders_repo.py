"""Repository interface for order operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from ..domain import Order, OrderLine, OrderStatus, StatusChange


class OrdersRepo(ABC):
    """Contract for order persistence.

    Every call is scoped to a single restaurant; an order owned by another
    restaurant behaves exactly like a missing one. Implementations raise
    :class:`~orderflow.domain.StorageError` for transient failures and never
    let driver exceptions escape.
    """

    @abstractmethod
    async def create_order(
        self,
        restaurant_id: str,
        table_number: int,
        lines: Sequence[OrderLine],
        total: Decimal,
        customer_name: str | None = None,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> Order:
        """Persist a new PENDING order."""
        raise NotImplementedError

    @abstractmethod
    async def get_order(self, restaurant_id: str, order_id: str) -> Order | None:
        """Return the order or ``None`` when it does not exist in scope."""
        raise NotImplementedError

    @abstractmethod
    async def list_active_orders(
        self,
        restaurant_id: str,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        """List non-terminal orders, optionally restricted to ``statuses``."""
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self,
        restaurant_id: str,
        order_id: str,
        new_status: OrderStatus,
        expected_current: OrderStatus | None = None,
        actor: str | None = None,
        at: datetime | None = None,
    ) -> Order:
        """Atomically move an order to ``new_status``.

        When ``expected_current`` is given the write only commits if the
        stored status still equals it; otherwise
        :class:`~orderflow.domain.ConflictError` is raised and nothing changes.
        Raises :class:`~orderflow.domain.OrderNotFound` for unknown ids.
        """
        raise NotImplementedError

    @abstractmethod
    async def history(self, restaurant_id: str, order_id: str) -> list[StatusChange]:
        """Return the status changes of an order, oldest first."""
        raise NotImplementedError
