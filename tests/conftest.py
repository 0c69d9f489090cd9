import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path to allow `import agents`, `import utils`, etc.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models.delivery import Courier, GeoPoint, Order, OrderLineItem, RouteLocation  # noqa: E402
from models.enums import CourierStatus, OrderStatus  # noqa: E402

# Pickup used across the suite (downtown Baltimore)
PICKUP = (39.30, -76.62)
DROPOFF = (39.3476, -76.7379)


@pytest.fixture
def make_courier():
    """Factory for couriers; defaults to an available, located courier at the pickup."""

    def _make(
        courier_id: str = "BUDDY-T1",
        rating: float = 4.5,
        total_deliveries: int = 10,
        status: CourierStatus = CourierStatus.AVAILABLE,
        location: tuple[float, float] | None = PICKUP,
        current_order: str | None = None,
    ) -> Courier:
        return Courier(
            courier_id=courier_id,
            name=f"Courier {courier_id}",
            rating=rating,
            total_deliveries=total_deliveries,
            status=status,
            location=GeoPoint(*location) if location is not None else None,
            current_order=current_order,
        )

    return _make


@pytest.fixture
def make_order():
    """Factory for orders picked up at PICKUP and dropped at DROPOFF."""

    def _make(
        order_id: str = "ord123456",
        items: list[OrderLineItem] | None = None,
        tip: float = 10.0,
        status: OrderStatus = OrderStatus.PREPARING,
    ) -> Order:
        return Order(
            order_id=order_id,
            items=items if items is not None else [OrderLineItem("Blue Dream", 1, 50.0)],
            pickup=RouteLocation("Test Dispensary", *PICKUP),
            delivery=RouteLocation("Test Customer", *DROPOFF),
            subtotal=50.0,
            delivery_fee=15.0,
            tip=tip,
            total=65.0 + tip,
            status=status,
        )

    return _make


@pytest.fixture
def pickup_point() -> GeoPoint:
    return GeoPoint(*PICKUP)
