"""Kitchen display: queue partitioning and live refresh."""

from .board import BoardCard, view_payload
from .hub import BoardHub
from .partition import MAX_PAGE_SIZE, PageSpec, QueueView, partition
from .refresh import RefreshCoordinator

__all__ = [
    "MAX_PAGE_SIZE",
    "BoardCard",
    "BoardHub",
    "PageSpec",
    "QueueView",
    "RefreshCoordinator",
    "partition",
    "view_payload",
]
