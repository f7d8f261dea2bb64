"""SQLAlchemy implementations of the repository contracts."""

from .orders_repo_sql import SqlOrdersRepo

__all__ = ["SqlOrdersRepo"]
