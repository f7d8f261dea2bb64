"""Application services."""

from .lifecycle_service import OrderLifecycleService

__all__ = ["OrderLifecycleService"]
