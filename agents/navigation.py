"""
Step-by-step delivery navigation for a courier holding an assignment.
"""

import logging
from dataclasses import dataclass

from config.config import CourierFeedConfig
from models.delivery import Assignment, GeoPoint
from models.enums import DeliveryStep
from models.errors import InvalidTransitionError
from utils.geo import EARTH_RADIUS_METERS, HasCoordinates, distance_between, estimate_duration_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteMetrics:
    distance_miles: float
    duration_minutes: int


def route_metrics(origin: HasCoordinates, destination: HasCoordinates) -> RouteMetrics:
    distance = distance_between(origin, destination)
    return RouteMetrics(distance_miles=distance, duration_minutes=estimate_duration_minutes(distance))


class DeliveryNavigator:
    """
    Walks a courier from pickup to drop-off.

    Mock orders can advance without the courier being on site; real orders
    require the courier within ``arrival_radius`` metres of the current stop.
    The radius defaults to the feed configuration (BUDZ_ARRIVAL_RADIUS_METERS).
    """

    def __init__(
        self,
        assignment: Assignment,
        is_mock: bool = True,
        arrival_radius: float | None = None,
        config: CourierFeedConfig | None = None,
    ):
        self.assignment = assignment
        self.is_mock = is_mock
        if arrival_radius is None:
            arrival_radius = (config or CourierFeedConfig()).arrival_radius_meters
        self.arrival_radius = arrival_radius
        self.step = DeliveryStep.PICKUP if assignment.picked_up_at is None else DeliveryStep.DELIVERY

    @property
    def destination(self) -> GeoPoint:
        stop = self.assignment.route.pickup if self.step == DeliveryStep.PICKUP else self.assignment.route.delivery
        return stop.point

    def distance_to_destination(self, user_location: HasCoordinates) -> float:
        """Metres between the courier and the current stop."""
        return distance_between(user_location, self.destination, radius=EARTH_RADIUS_METERS)

    def is_at_location(self, user_location: HasCoordinates | None) -> bool:
        if user_location is None:
            return False
        return self.distance_to_destination(user_location) <= self.arrival_radius

    def metrics_from(self, user_location: HasCoordinates) -> RouteMetrics:
        return route_metrics(user_location, self.destination)

    def complete_pickup(self, user_location: HasCoordinates | None = None) -> bool:
        """Mark the items collected. Returns False when the courier is not yet there."""
        if self.step != DeliveryStep.PICKUP:
            raise InvalidTransitionError(f"Navigation for order {self.assignment.order_id}", self.step.value, "picked_up")
        if not (self.is_mock or self.is_at_location(user_location)):
            logger.info(f"Pickup for order {self.assignment.order_id} refused: courier not at the dispensary")
            return False
        # Requires an accepted (delivering) assignment
        self.assignment.mark_picked_up()
        self.step = DeliveryStep.DELIVERY
        logger.info(f"Order {self.assignment.order_id} picked up; heading to drop-off")
        return True

    def can_verify_delivery(self, user_location: HasCoordinates | None = None) -> bool:
        """Whether the patient ID check at drop-off may start."""
        return self.step == DeliveryStep.DELIVERY and (self.is_mock or self.is_at_location(user_location))

    def complete_delivery(self, verified: bool, user_location: HasCoordinates | None = None) -> bool:
        """
        Whether the drop-off may be reported as completed.

        The assignment itself is completed by whoever owns it (the dispatcher),
        so this only checks the step, the location and the ID verification.
        """
        if self.step != DeliveryStep.DELIVERY:
            raise InvalidTransitionError(f"Navigation for order {self.assignment.order_id}", self.step.value, "delivered")
        if not verified:
            logger.info(f"Delivery of order {self.assignment.order_id} awaiting ID verification")
            return False
        return self.can_verify_delivery(user_location)
