"""Render-tick helpers turning queue views into display payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..domain import Order, Urgency, allowed_targets
from ..domain.urgency import classify, elapsed_minutes, time_since_label
from .partition import QueueView


@dataclass(frozen=True)
class BoardCard:
    """An order as shown on the kitchen display at one instant."""

    order: Order
    urgency: Urgency
    elapsed_minutes: int

    @classmethod
    def at(cls, order: Order, now: datetime) -> "BoardCard":
        minutes = elapsed_minutes(order, now)
        return cls(order=order, urgency=classify(order.status, minutes), elapsed_minutes=minutes)

    def to_dict(self) -> dict[str, Any]:
        data = self.order.to_dict()
        data.update(
            urgency=self.urgency.value,
            elapsed_minutes=self.elapsed_minutes,
            since=time_since_label(self.elapsed_minutes),
            next_statuses=[s.value for s in allowed_targets(self.order.status)],
        )
        return data


def view_payload(view: QueueView, now: datetime) -> dict[str, Any]:
    """Serialise ``view`` with urgency evaluated at ``now``."""

    return {
        "status": view.status.value,
        "total_count": view.total_count,
        "page": view.page,
        "page_size": view.page_size,
        "total_pages": view.total_pages,
        "has_more": view.has_more,
        "orders": [BoardCard.at(order, now).to_dict() for order in view.orders],
    }
