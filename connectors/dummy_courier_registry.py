"""
Module: connectors.dummy_courier_registry

Provides a dummy in-memory courier registry seeded with a small Baltimore fleet.
Couriers are never deleted; they move between soft states.
"""

import logging

from models.delivery import Courier, GeoPoint, VehicleInfo
from models.enums import CourierStatus, VehicleType

logger = logging.getLogger(__name__)


def mock_fleet() -> list[Courier]:
    """A fresh copy of the demo fleet."""
    return [
        Courier(
            courier_id="BUDDY-001",
            name="Jordan",
            rating=4.9,
            total_deliveries=312,
            status=CourierStatus.AVAILABLE,
            location=GeoPoint(39.2904, -76.6122),
            mmcc_id="MMCC-100001",
            vehicle=VehicleInfo(VehicleType.CAR, "Civic", "blue"),
        ),
        Courier(
            courier_id="BUDDY-002",
            name="Sam",
            rating=4.6,
            total_deliveries=128,
            status=CourierStatus.AVAILABLE,
            location=GeoPoint(39.3300, -76.7000),
            mmcc_id="MMCC-100002",
            vehicle=VehicleInfo(VehicleType.MOTORCYCLE),
        ),
        Courier(
            courier_id="BUDDY-003",
            name="Riley",
            rating=3.8,
            total_deliveries=540,
            status=CourierStatus.AVAILABLE,
            location=GeoPoint(39.3450, -76.7350),
            mmcc_id="MMCC-100003",
        ),
        Courier(
            courier_id="BUDDY-004",
            name="Casey",
            rating=4.7,
            total_deliveries=75,
            status=CourierStatus.OFFLINE,
            location=None,
            mmcc_id="MMCC-100004",
            vehicle=VehicleInfo(VehicleType.BICYCLE),
        ),
    ]


class DummyCourierRegistry:
    """
    Dummy courier store for testing the dispatcher.
    """

    def __init__(self, couriers: list[Courier] | None = None):
        fleet = mock_fleet() if couriers is None else couriers
        self._couriers: dict[str, Courier] = {c.courier_id: c for c in fleet}

    def register(self, courier: Courier) -> Courier:
        if courier.courier_id in self._couriers:
            logger.warning(f"Re-registering courier {courier.courier_id}")
        self._couriers[courier.courier_id] = courier
        logger.info(f"Courier {courier.name} ({courier.courier_id}) registered.")
        return courier

    def get_courier(self, courier_id: str) -> Courier | None:
        return self._couriers.get(courier_id)

    def list_couriers(self, status: CourierStatus | None = None) -> list[Courier]:
        couriers = list(self._couriers.values())
        if status is not None:
            couriers = [c for c in couriers if c.status == status]
        return couriers

    def update_location(self, courier_id: str, location: GeoPoint) -> Courier | None:
        courier = self._couriers.get(courier_id)
        if courier is None:
            logger.warning(f"Location update for unknown courier {courier_id}")
            return None
        courier.update_location(location)
        return courier

    def update_status(self, courier_id: str, status: CourierStatus) -> Courier | None:
        courier = self._couriers.get(courier_id)
        if courier is None:
            logger.warning(f"Status update for unknown courier {courier_id}")
            return None
        courier.set_status(status)
        logger.info(f"Courier {courier_id} is now {courier.status.value}")
        return courier
