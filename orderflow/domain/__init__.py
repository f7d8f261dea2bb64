"""Domain models and helpers."""

from .errors import (
    ConflictError,
    IllegalTransition,
    LifecycleError,
    OrderNotFound,
    StorageError,
)
from .order import Order, OrderLine, StatusChange
from .order_status import (
    ACTIVE_STATUSES,
    STATUS_LABELS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    OrderStatus,
    allowed_targets,
    can_transition,
    is_terminal,
    validate,
)
from .urgency import Urgency, classify, classify_order, elapsed_minutes

__all__ = [
    "ACTIVE_STATUSES",
    "STATUS_LABELS",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "ConflictError",
    "IllegalTransition",
    "LifecycleError",
    "Order",
    "OrderLine",
    "OrderNotFound",
    "OrderStatus",
    "StatusChange",
    "StorageError",
    "Urgency",
    "allowed_targets",
    "can_transition",
    "classify",
    "classify_order",
    "elapsed_minutes",
    "is_terminal",
    "validate",
]
