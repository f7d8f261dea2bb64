"""Urgency tiers for kitchen display escalation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from .order_status import OrderStatus

if TYPE_CHECKING:
    from .order import Order


class Urgency(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    INAPPLICABLE = "inapplicable"


# (warning_after, critical_after) in minutes; ``None`` means no warning tier.
THRESHOLDS: dict[OrderStatus, tuple[int | None, int]] = {
    OrderStatus.PENDING: (10, 15),
    OrderStatus.PREPARING: (10, 30),
    OrderStatus.READY: (None, 10),
}


def classify(status: OrderStatus, elapsed_minutes: float) -> Urgency:
    """Map ``status`` and minutes spent in it to an urgency tier.

    Thresholds are strict: an order 15 minutes into PENDING is still a
    warning, at 16 it is critical. Terminal statuses are not classified.
    """

    limits = THRESHOLDS.get(status)
    if limits is None:
        return Urgency.INAPPLICABLE
    warning_after, critical_after = limits
    if elapsed_minutes > critical_after:
        return Urgency.CRITICAL
    if warning_after is not None and elapsed_minutes > warning_after:
        return Urgency.WARNING
    return Urgency.NORMAL


def reference_time(order: "Order") -> datetime:
    """Return the timestamp elapsed time is measured from."""

    if order.status is OrderStatus.PENDING:
        return order.created_at
    return order.updated_at


def elapsed_minutes(order: "Order", now: datetime) -> int:
    """Whole minutes ``order`` has spent in its current status at ``now``."""

    seconds = (now - reference_time(order)).total_seconds()
    return max(int(seconds // 60), 0)


def classify_order(order: "Order", now: datetime) -> Urgency:
    return classify(order.status, elapsed_minutes(order, now))


def time_since_label(minutes: int) -> str:
    if minutes < 1:
        return "Just now"
    if minutes == 1:
        return "1 min ago"
    return f"{minutes} mins ago"
