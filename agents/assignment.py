"""
Assignment of orders to couriers.

Couriers are filtered for eligibility, scored, ranked and the best one is bound
to the order through an Assignment record. When nobody qualifies the caller
gets a NotFound outcome rather than an exception.
"""

import logging
import random
import string
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from config.config import AssignmentConfig, EarningsConfig
from models.delivery import (
    Assigned,
    Assignment,
    Courier,
    DeliveryItem,
    DispensaryInfo,
    NotFound,
    Order,
    OrderLineItem,
    PatientSnapshot,
    RouteInfo,
    RouteLocation,
)
from models.enums import CourierStatus, ItemType
from utils.geo import HasCoordinates, distances_from, estimate_duration_minutes

from .earnings import estimate_order_earnings
from .scoring import ScoreBreakdown, score_breakdown

logger = logging.getLogger(__name__)

_KNOWN_ITEM_TYPES = {t.value for t in ItemType}
_LICENSE_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class RankedCandidate:
    courier: Courier
    distance: float  # miles to pickup
    breakdown: ScoreBreakdown

    @property
    def score(self) -> float:
        return self.breakdown.total


class AssignmentSelector:
    """
    Chooses the best courier for an order and builds the assignment.

    Ranking is total: score descending, then courier_id ascending, so the same
    candidates always produce the same winner whatever order they arrive in.
    """

    def __init__(
        self,
        config: AssignmentConfig | None = None,
        rates: EarningsConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or AssignmentConfig()
        self.rates = rates or EarningsConfig()
        self.rng = rng or random.Random()

    def rejection_reason(self, courier: Courier) -> str | None:
        """Why a courier cannot be considered before distance is known, or None."""
        if courier.status != CourierStatus.AVAILABLE:
            return f"status is {courier.status.value}"
        if courier.location is None:
            return "location unknown"
        if courier.rating < self.config.min_rating:
            return f"rating {courier.rating} below {self.config.min_rating}"
        return None

    def rank_candidates(self, pickup: HasCoordinates, couriers: Sequence[Courier]) -> list[RankedCandidate]:
        """Score every eligible courier and return them best first."""
        # Experience is normalised over everyone supplied, eligible or not
        max_deliveries = max((c.total_deliveries for c in couriers), default=0)

        located: list[Courier] = []
        for courier in couriers:
            reason = self.rejection_reason(courier)
            if reason:
                logger.debug(f"Courier {courier.courier_id} skipped: {reason}")
                continue
            located.append(courier)

        distances = distances_from(pickup, [c.location for c in located])
        ranked: list[RankedCandidate] = []
        for courier, distance in zip(located, distances):
            if distance > self.config.max_assignment_distance:
                logger.debug(
                    f"Courier {courier.courier_id} skipped: {distance:.2f} mi exceeds "
                    f"{self.config.max_assignment_distance} mi"
                )
                continue
            breakdown = score_breakdown(courier, distance, max_deliveries, self.config)
            ranked.append(RankedCandidate(courier=courier, distance=distance, breakdown=breakdown))

        ranked.sort(key=lambda r: (-r.score, r.courier.courier_id))
        return ranked

    def find_best_courier(self, pickup: HasCoordinates, couriers: Sequence[Courier]) -> RankedCandidate | None:
        ranked = self.rank_candidates(pickup, couriers)
        return ranked[0] if ranked else None

    def _normalize_item(self, item: OrderLineItem) -> DeliveryItem:
        item_type = item.item_type if item.item_type in _KNOWN_ITEM_TYPES else self.config.default_item_type
        return DeliveryItem(
            name=item.name,
            item_type=ItemType(item_type),
            quantity=f"{item.quantity}g",
            thc=item.thc or self.config.default_thc,
        )

    def _license_number(self) -> str:
        return "D-" + "".join(self.rng.choice(_LICENSE_ALPHABET) for _ in range(6))

    def build_assignment(
        self,
        order: Order,
        courier: Courier,
        distance: float,
        patient: PatientSnapshot | None = None,
        assigned_at: datetime | None = None,
    ) -> Assignment:
        """Create the initial (seeking_courier) assignment of ``order`` to ``courier``."""
        patient = patient or PatientSnapshot(name="Unknown patient", mmcc_id="PT-" + order.order_id[-6:])
        pickup = order.pickup
        delivery = order.delivery
        return Assignment(
            order_id=order.order_id,
            courier_id=courier.courier_id,
            patient=patient,
            dispensary=DispensaryInfo(
                name=pickup.address,
                license=self._license_number(),
                address=pickup.address,
                lat=pickup.lat,
                lng=pickup.lng,
            ),
            delivery=RouteLocation(delivery.address, delivery.lat, delivery.lng),
            items=[self._normalize_item(item) for item in order.items],
            route=RouteInfo(
                pickup=RouteLocation(pickup.address, pickup.lat, pickup.lng),
                delivery=RouteLocation(delivery.address, delivery.lat, delivery.lng),
                estimated_distance=distance,
                estimated_duration=estimate_duration_minutes(distance),
            ),
            estimated_earnings=estimate_order_earnings(order, distance, self.rates),
            assigned_at=assigned_at or datetime.now(),
        )

    def assign_order(
        self,
        order: Order,
        couriers: Sequence[Courier],
        patient: PatientSnapshot | None = None,
    ) -> Assigned | NotFound:
        """Pick the best courier for ``order``; NotFound when none is eligible."""
        if not couriers:
            logger.warning(f"No couriers supplied for order {order.order_id}.")
            return NotFound(order_id=order.order_id, reason="no couriers supplied", candidates_considered=0)

        best = self.find_best_courier(order.pickup, couriers)
        if best is None:
            logger.info(f"No eligible courier among {len(couriers)} for order {order.order_id}.")
            return NotFound(
                order_id=order.order_id,
                reason="no eligible courier within range",
                candidates_considered=len(couriers),
            )

        assignment = self.build_assignment(order, best.courier, best.distance, patient)
        logger.info(
            f"Order {order.order_id} matched to courier {best.courier.courier_id} "
            f"(score {best.score:.3f}, {best.distance:.2f} mi)"
        )
        return Assigned(courier=best.courier, assignment=assignment, score=best.score, distance=best.distance)
