"""Order status enumeration and allowed transitions."""

from __future__ import annotations

from enum import Enum

from .errors import IllegalTransition


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (
        OrderStatus.SERVED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    ),
    OrderStatus.SERVED: (),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}

# Kitchen display column order
ACTIVE_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)
TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.READY: "Ready",
    OrderStatus.SERVED: "Served",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def allowed_targets(status: OrderStatus) -> tuple[OrderStatus, ...]:
    """Return the statuses ``status`` may move to, in display order."""

    return TRANSITIONS.get(status, ())


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(src: OrderStatus, dst: OrderStatus) -> bool:
    """Return ``True`` if an order can move from ``src`` to ``dst``."""

    return dst in TRANSITIONS.get(src, ())


def validate(current: OrderStatus, requested: OrderStatus) -> None:
    """Raise :class:`IllegalTransition` unless ``current -> requested`` is legal.

    The check is pure: it never touches storage, so callers must pass the
    status that is actually persisted rather than the one a client believed.
    """

    if not can_transition(current, requested):
        raise IllegalTransition(current, requested)
