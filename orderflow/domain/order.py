"""Order entities as seen by the lifecycle core.

Orders are immutable snapshots. A status change produces a new snapshot via
:meth:`Order.transition`, which always runs the transition validator first,
so no code path can assign a status without going through the state machine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from .order_status import OrderStatus, validate

FULFILLED_STATUSES = frozenset({OrderStatus.SERVED, OrderStatus.DELIVERED})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes; they are stored in UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class OrderLine:
    """A single line of an order."""

    menu_item_id: str
    name: str
    quantity: int = 1
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be at least 1")

    def to_dict(self) -> dict[str, Any]:
        return {
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Order:
    """Snapshot of a placed order."""

    id: str
    restaurant_id: str
    table_number: int
    items: tuple[OrderLine, ...]
    total: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    customer_name: str | None = None
    notes: str | None = None
    served_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("an order needs at least one item")
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "updated_at", as_utc(self.updated_at))
        if self.served_at is not None:
            object.__setattr__(self, "served_at", as_utc(self.served_at))
        if self.updated_at < self.created_at:
            raise ValueError("updated_at precedes created_at")

    def transition(self, target: OrderStatus, at: datetime | None = None) -> "Order":
        """Return a copy of this order moved to ``target``.

        Raises :class:`~orderflow.domain.errors.IllegalTransition` when the
        state machine forbids the move. ``updated_at`` never goes backwards
        even if ``at`` comes from a skewed clock.
        """

        validate(self.status, target)
        stamp = max(as_utc(at or utcnow()), self.updated_at)
        served_at = stamp if target in FULFILLED_STATUSES else self.served_at
        return replace(self, status=target, updated_at=stamp, served_at=served_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "table_number": self.table_number,
            "customer_name": self.customer_name,
            "items": [line.to_dict() for line in self.items],
            "notes": self.notes,
            "total": str(self.total),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "served_at": self.served_at.isoformat() if self.served_at else None,
        }


@dataclass(frozen=True)
class StatusChange:
    """One entry of an order's status history."""

    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    at: datetime
    actor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "from": self.from_status.value,
            "to": self.to_status.value,
            "at": self.at.isoformat(),
            "actor": self.actor,
        }
