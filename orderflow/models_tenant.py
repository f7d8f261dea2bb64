"""Tenant-specific database models.

These models describe the per-tenant schema used by the order store. They are
kept isolated from any application wiring so that they can be used in tests or
migrations independently."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Order(Base):
    """Placed orders. ``status`` holds an ``OrderStatus`` value."""

    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    restaurant_id = Column(String, nullable=False)
    table_number = Column(Integer, nullable=False)
    customer_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String(16), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    served_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_orders_restaurant_status", "restaurant_id", "status"),
        Index("ix_orders_restaurant_created", "restaurant_id", "created_at"),
    )


class OrderItem(Base):
    """Order lines with a snapshot of the menu item name."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, nullable=False)
    menu_item_id = Column(String, nullable=False)
    name_snapshot = Column(String, nullable=False)
    qty = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)


class OrderStatusHistory(Base):
    """Audit trail of committed status transitions."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    from_status = Column(String(16), nullable=False)
    to_status = Column(String(16), nullable=False)
    at = Column(DateTime(timezone=True), nullable=False)
    actor = Column(String, nullable=True)
