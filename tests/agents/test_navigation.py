import random

import pytest

from agents.assignment import AssignmentSelector
from agents.navigation import DeliveryNavigator, route_metrics
from config.config import CourierFeedConfig
from models.delivery import GeoPoint
from models.enums import DeliveryStep
from models.errors import InvalidTransitionError

PICKUP = (39.30, -76.62)
DROPOFF = (39.3476, -76.7379)


@pytest.fixture
def assignment(make_courier, make_order):
    outcome = AssignmentSelector(rng=random.Random(0)).assign_order(make_order(), [make_courier()])
    return outcome.assignment


def test_route_metrics():
    metrics = route_metrics(GeoPoint(0.0, 0.0), GeoPoint(0.1, 0.0))
    # 0.1 degree of latitude is about 6.9 miles
    assert metrics.distance_miles == pytest.approx(6.91, abs=0.01)
    assert metrics.duration_minutes == 14


def test_starts_at_pickup(assignment):
    navigator = DeliveryNavigator(assignment)
    assert navigator.step == DeliveryStep.PICKUP
    assert (navigator.destination.lat, navigator.destination.lng) == PICKUP


def test_mock_order_pickup_does_not_need_location(assignment):
    assignment.accept()
    navigator = DeliveryNavigator(assignment, is_mock=True)

    assert navigator.complete_pickup() is True
    assert navigator.step == DeliveryStep.DELIVERY
    assert assignment.picked_up_at is not None
    assert (navigator.destination.lat, navigator.destination.lng) == DROPOFF


def test_real_order_pickup_requires_arrival(assignment):
    assignment.accept()
    navigator = DeliveryNavigator(assignment, is_mock=False)

    assert navigator.complete_pickup(GeoPoint(39.31, -76.62)) is False
    assert navigator.step == DeliveryStep.PICKUP
    assert assignment.picked_up_at is None

    # About 20 metres from the dispensary
    assert navigator.complete_pickup(GeoPoint(39.30018, -76.62)) is True
    assert navigator.step == DeliveryStep.DELIVERY


def test_pickup_before_accept_is_refused(assignment):
    navigator = DeliveryNavigator(assignment)
    with pytest.raises(InvalidTransitionError):
        navigator.complete_pickup()
    assert navigator.step == DeliveryStep.PICKUP


def test_pickup_twice_is_refused(assignment):
    assignment.accept()
    navigator = DeliveryNavigator(assignment)
    navigator.complete_pickup()
    with pytest.raises(InvalidTransitionError):
        navigator.complete_pickup()


def test_resumes_at_delivery_step_after_pickup(assignment):
    assignment.accept()
    assignment.mark_picked_up()
    assert DeliveryNavigator(assignment).step == DeliveryStep.DELIVERY


def test_complete_delivery_requires_verification(assignment):
    assignment.accept()
    navigator = DeliveryNavigator(assignment)
    navigator.complete_pickup()

    assert navigator.complete_delivery(verified=False) is False
    assert navigator.complete_delivery(verified=True) is True
    # Completing the assignment is left to the dispatcher
    assert assignment.delivered_at is None


def test_real_order_delivery_requires_arrival(assignment):
    assignment.accept()
    navigator = DeliveryNavigator(assignment, is_mock=False)
    navigator.complete_pickup(GeoPoint(*PICKUP))

    assert not navigator.can_verify_delivery(GeoPoint(*PICKUP))
    assert navigator.complete_delivery(True, GeoPoint(*PICKUP)) is False
    assert navigator.complete_delivery(True, GeoPoint(*DROPOFF)) is True


def test_delivery_before_pickup_raises(assignment):
    with pytest.raises(InvalidTransitionError):
        DeliveryNavigator(assignment).complete_delivery(verified=True)


def test_is_at_location(assignment):
    navigator = DeliveryNavigator(assignment, arrival_radius=100.0)
    assert navigator.is_at_location(GeoPoint(*PICKUP))
    assert not navigator.is_at_location(None)
    assert navigator.distance_to_destination(GeoPoint(39.301, -76.62)) == pytest.approx(111.2, abs=0.5)
    assert navigator.metrics_from(GeoPoint(*PICKUP)).duration_minutes == 0


def test_arrival_radius_comes_from_feed_config(assignment):
    # About 200 metres north of the dispensary
    nearby = GeoPoint(39.3018, -76.62)

    assert DeliveryNavigator(assignment).arrival_radius == 50.0
    assert not DeliveryNavigator(assignment).is_at_location(nearby)

    wide = DeliveryNavigator(assignment, config=CourierFeedConfig(arrival_radius_meters=250.0))
    assert wide.arrival_radius == 250.0
    assert wide.is_at_location(nearby)

    # An explicit radius wins over the config
    assert not DeliveryNavigator(assignment, arrival_radius=10.0, config=CourierFeedConfig()).is_at_location(nearby)


def test_arrival_radius_from_environment(assignment, monkeypatch):
    monkeypatch.setenv("BUDZ_ARRIVAL_RADIUS_METERS", "250")
    assignment.accept()
    navigator = DeliveryNavigator(assignment, is_mock=False, config=CourierFeedConfig.from_env())

    assert navigator.complete_pickup(GeoPoint(39.3018, -76.62)) is True
