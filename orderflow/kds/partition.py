"""Split active orders into independently paginated per-status queues."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from math import ceil
from typing import Iterable, Mapping

from ..domain import ACTIVE_STATUSES, Order, OrderStatus, is_terminal

# Hard cap to protect against overly large responses
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class PageSpec:
    """1-based page number and page size for one queue."""

    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.size < 1:
            raise ValueError("size must be >= 1")
        object.__setattr__(self, "size", min(self.size, MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True)
class QueueView:
    """One page of a status queue together with its total size."""

    status: OrderStatus
    orders: tuple[Order, ...] = field(default_factory=tuple)
    total_count: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return ceil(self.total_count / self.page_size)

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total_count

    @property
    def order_ids(self) -> list[str]:
        return [order.id for order in self.orders]


def queue_key(order: Order) -> tuple:
    """Oldest first, ties broken by id so the order is deterministic."""
    return (order.created_at, order.id)


def partition(
    orders: Iterable[Order],
    status_filters: Iterable[OrderStatus] | None = None,
    page_specs: Mapping[OrderStatus, PageSpec] | None = None,
) -> dict[OrderStatus, QueueView]:
    """Return one :class:`QueueView` per requested status.

    ``status_filters`` defaults to every active status; terminal statuses
    never get a queue and terminal orders in ``orders`` are skipped. Each
    queue is paginated with its own entry of ``page_specs`` so moving one
    column's page leaves the others untouched. Nothing is backfilled: if an
    order left a queue, that page simply holds one order less.
    """

    statuses = [
        status
        for status in (ACTIVE_STATUSES if status_filters is None else status_filters)
        if not is_terminal(status)
    ]
    page_specs = page_specs or {}

    grouped: dict[OrderStatus, list[Order]] = defaultdict(list)
    for order in orders:
        if not is_terminal(order.status):
            grouped[order.status].append(order)

    views: dict[OrderStatus, QueueView] = {}
    for status in dict.fromkeys(statuses):
        spec = page_specs.get(status) or PageSpec()
        queue = sorted(grouped.get(status, ()), key=queue_key)
        views[status] = QueueView(
            status=status,
            orders=tuple(queue[spec.offset : spec.offset + spec.size]),
            total_count=len(queue),
            page=spec.page,
            page_size=spec.size,
        )
    return views
