"""SQLAlchemy-backed order store.

Status writes are a single conditional ``UPDATE ... WHERE status = :seen``
so that at most one of several concurrent writers commits, whichever kitchen
terminal they come from. Driver failures are translated into
:class:`~orderflow.domain.StorageError` here and nowhere else.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.tenant import TenantEngines
from ..domain import (
    ACTIVE_STATUSES,
    ConflictError,
    Order,
    OrderLine,
    OrderNotFound,
    OrderStatus,
    StatusChange,
    StorageError,
)
from ..domain.order import as_utc, utcnow
from ..models_tenant import Order as OrderRow
from ..models_tenant import OrderItem as OrderItemRow
from ..models_tenant import OrderStatusHistory
from ..repos.orders_repo import OrdersRepo


def _to_domain(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        restaurant_id=row.restaurant_id,
        table_number=row.table_number,
        items=tuple(
            OrderLine(
                menu_item_id=item.menu_item_id,
                name=item.name_snapshot,
                quantity=item.qty,
                notes=item.notes,
            )
            for item in row.items
        ),
        total=Decimal(row.total),
        status=OrderStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        customer_name=row.customer_name,
        notes=row.notes,
        served_at=row.served_at,
    )


class SqlOrdersRepo(OrdersRepo):
    def __init__(self, engines: TenantEngines) -> None:
        self.engines = engines

    async def _load(
        self, session: AsyncSession, restaurant_id: str, order_id: str
    ) -> OrderRow | None:
        result = await session.execute(
            select(OrderRow).where(
                OrderRow.id == order_id, OrderRow.restaurant_id == restaurant_id
            )
        )
        return result.scalar_one_or_none()

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
        stamp = as_utc(at or utcnow())
        # Build the domain object first so its invariants reject bad input
        order = Order(
            id=uuid.uuid4().hex,
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
        row = OrderRow(
            id=order.id,
            restaurant_id=restaurant_id,
            table_number=table_number,
            customer_name=customer_name,
            notes=notes,
            total=order.total,
            status=order.status.value,
            created_at=stamp,
            updated_at=stamp,
            items=[
                OrderItemRow(
                    position=pos,
                    menu_item_id=line.menu_item_id,
                    name_snapshot=line.name,
                    qty=line.quantity,
                    notes=line.notes,
                )
                for pos, line in enumerate(order.items)
            ],
        )
        try:
            async with self.engines.session(restaurant_id) as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"could not create order: {exc}") from exc
        return order

    async def get_order(self, restaurant_id: str, order_id: str) -> Order | None:
        try:
            async with self.engines.session(restaurant_id) as session:
                row = await self._load(session, restaurant_id, order_id)
                return _to_domain(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(f"could not load order {order_id!r}: {exc}") from exc

    async def list_active_orders(
        self,
        restaurant_id: str,
        statuses: Iterable[OrderStatus] | None = None,
    ) -> list[Order]:
        wanted = [
            s.value
            for s in (ACTIVE_STATUSES if statuses is None else statuses)
            if s in ACTIVE_STATUSES
        ]
        if not wanted:
            return []
        try:
            async with self.engines.session(restaurant_id) as session:
                result = await session.execute(
                    select(OrderRow)
                    .where(
                        OrderRow.restaurant_id == restaurant_id,
                        OrderRow.status.in_(wanted),
                    )
                    .order_by(OrderRow.created_at, OrderRow.id)
                )
                return [_to_domain(row) for row in result.scalars()]
        except SQLAlchemyError as exc:
            raise StorageError(f"could not list orders: {exc}") from exc

    async def update_status(
        self,
        restaurant_id: str,
        order_id: str,
        new_status: OrderStatus,
        expected_current: OrderStatus | None = None,
        actor: str | None = None,
        at: datetime | None = None,
    ) -> Order:
        try:
            async with self.engines.session(restaurant_id) as session:
                row = await self._load(session, restaurant_id, order_id)
                if row is None:
                    raise OrderNotFound(order_id)
                current = _to_domain(row)
                if expected_current is not None and current.status is not expected_current:
                    raise ConflictError(order_id, expected_current, current.status)
                updated = current.transition(new_status, at)
                result = await session.execute(
                    update(OrderRow)
                    .where(
                        OrderRow.id == order_id,
                        OrderRow.restaurant_id == restaurant_id,
                        OrderRow.status == current.status.value,
                    )
                    .values(
                        status=updated.status.value,
                        updated_at=updated.updated_at,
                        served_at=updated.served_at,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    await session.rollback()
                    raise ConflictError(order_id, current.status)
                session.add(
                    OrderStatusHistory(
                        order_id=order_id,
                        from_status=current.status.value,
                        to_status=updated.status.value,
                        at=updated.updated_at,
                        actor=actor,
                    )
                )
                await session.commit()
                return updated
        except SQLAlchemyError as exc:
            raise StorageError(f"could not update order {order_id!r}: {exc}") from exc

    async def history(self, restaurant_id: str, order_id: str) -> list[StatusChange]:
        try:
            async with self.engines.session(restaurant_id) as session:
                if await self._load(session, restaurant_id, order_id) is None:
                    raise OrderNotFound(order_id)
                result = await session.execute(
                    select(OrderStatusHistory)
                    .where(OrderStatusHistory.order_id == order_id)
                    .order_by(OrderStatusHistory.id)
                )
                return [
                    StatusChange(
                        order_id=row.order_id,
                        from_status=OrderStatus(row.from_status),
                        to_status=OrderStatus(row.to_status),
                        at=as_utc(row.at),
                        actor=row.actor,
                    )
                    for row in result.scalars()
                ]
        except SQLAlchemyError as exc:
            raise StorageError(f"could not load history for {order_id!r}: {exc}") from exc
