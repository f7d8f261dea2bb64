"""Typed failures raised by the order lifecycle."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .order_status import OrderStatus


class LifecycleError(Exception):
    """Base class for every error the lifecycle service surfaces."""

    code = "LIFECYCLE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        """Return structured context for the error envelope."""
        return {}


class IllegalTransition(LifecycleError):
    """Raised when a status change violates the order state machine."""

    code = "ILLEGAL_TRANSITION"

    def __init__(self, src: "OrderStatus", dst: "OrderStatus") -> None:
        super().__init__(f"cannot transition from {src.value!r} to {dst.value!r}")
        self.src = src
        self.dst = dst

    def details(self) -> dict[str, Any]:
        return {"from": self.src.value, "to": self.dst.value}


class OrderNotFound(LifecycleError):
    """Raised when an order id does not resolve within the restaurant scope."""

    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"order {order_id!r} not found")
        self.order_id = order_id

    def details(self) -> dict[str, Any]:
        return {"order_id": self.order_id}


class ConflictError(LifecycleError):
    """Raised by a store when the expected current status no longer holds."""

    code = "CONFLICT"

    def __init__(
        self,
        order_id: str,
        expected: "OrderStatus",
        actual: "OrderStatus | None" = None,
    ) -> None:
        super().__init__(f"order {order_id!r} is no longer {expected.value!r}")
        self.order_id = order_id
        self.expected = expected
        self.actual = actual

    def details(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "expected": self.expected.value,
            "actual": self.actual.value if self.actual else None,
        }


class StorageError(LifecycleError):
    """Raised when the order store fails for a transient reason."""

    code = "STORAGE_ERROR"
