from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from orderflow.domain import Order, OrderLine, OrderStatus

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

LINES = (
    OrderLine(menu_item_id="m1", name="Burger", quantity=2),
    OrderLine(menu_item_id="m2", name="Fries", quantity=1, notes="no salt"),
)


class FakeClock:
    """Settable clock handed to services and coordinators."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def make_order(
    order_id: str = "o1",
    status: OrderStatus = OrderStatus.PENDING,
    created_at: datetime = T0,
    updated_at: datetime | None = None,
    restaurant_id: str = "r1",
    table_number: int = 1,
) -> Order:
    return Order(
        id=order_id,
        restaurant_id=restaurant_id,
        table_number=table_number,
        items=LINES,
        total=Decimal("21.50"),
        status=status,
        created_at=created_at,
        updated_at=updated_at or created_at,
    )


async def seed(store, restaurant_id: str, count: int, start: datetime = T0, prefix: str = "o"):
    """Create ``count`` pending orders one minute apart starting at ``start``."""
    orders = []
    for i in range(count):
        orders.append(
            await store.create_order(
                restaurant_id,
                table_number=i + 1,
                lines=LINES,
                total=Decimal("10.00"),
                at=start + timedelta(minutes=i),
                order_id=f"{prefix}{i:02d}",
            )
        )
    return orders
