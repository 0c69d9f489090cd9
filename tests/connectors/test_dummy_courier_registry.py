import logging

import pytest

from connectors.dummy_courier_registry import DummyCourierRegistry, mock_fleet
from models.delivery import GeoPoint
from models.enums import CourierStatus


@pytest.fixture
def registry() -> DummyCourierRegistry:
    return DummyCourierRegistry()


def test_default_fleet(registry):
    ids = [c.courier_id for c in registry.list_couriers()]
    assert ids == ["BUDDY-001", "BUDDY-002", "BUDDY-003", "BUDDY-004"]
    assert registry.get_courier("BUDDY-003").rating == 3.8
    assert registry.get_courier("BUDDY-004").location is None


def test_mock_fleet_returns_fresh_copies():
    first, second = mock_fleet(), mock_fleet()
    first[0].set_status(CourierStatus.OFFLINE)
    assert second[0].status == CourierStatus.AVAILABLE


def test_empty_registry():
    assert DummyCourierRegistry([]).list_couriers() == []


def test_list_by_status(registry):
    offline = registry.list_couriers(CourierStatus.OFFLINE)
    assert [c.courier_id for c in offline] == ["BUDDY-004"]


def test_register_new_and_existing(registry, make_courier, caplog):
    registry.register(make_courier("BUDDY-009"))
    assert registry.get_courier("BUDDY-009") is not None

    with caplog.at_level(logging.WARNING):
        registry.register(make_courier("BUDDY-009", rating=4.1))
    assert "Re-registering courier BUDDY-009" in caplog.text
    assert registry.get_courier("BUDDY-009").rating == 4.1


def test_update_location(registry):
    courier = registry.update_location("BUDDY-004", GeoPoint(39.29, -76.61))
    assert courier.location.lat == 39.29


def test_update_status(registry):
    courier = registry.update_status("BUDDY-004", CourierStatus.AVAILABLE)
    assert courier.status == CourierStatus.AVAILABLE
    assert [c.courier_id for c in registry.list_couriers(CourierStatus.OFFLINE)] == []


def test_unknown_courier_updates_are_logged(registry, caplog):
    with caplog.at_level(logging.WARNING):
        assert registry.update_location("NOPE", GeoPoint(0.0, 0.0)) is None
        assert registry.update_status("NOPE", CourierStatus.OFFLINE) is None
    assert "unknown courier NOPE" in caplog.text
    assert registry.get_courier("NOPE") is None
