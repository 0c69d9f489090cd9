"""
Dispatch agent: turns available orders into courier assignments and follows
each assignment through delivery.
"""

import logging

from connectors.dummy_courier_registry import DummyCourierRegistry
from connectors.dummy_order_system import DummyOrderSystem
from models.delivery import Assigned, Assignment, GeoPoint, NotFound, Order, PatientSnapshot
from models.enums import AssignmentStatus, DeliveryEventType, OrderStatus, ServiceType
from models.errors import DispatchError, DuplicateAssignmentError, MalformedInputError, UnknownAssignmentError
from models.events import DeliveryEvent
from utils.event_bus import EventBus

from .assignment import AssignmentSelector
from .base import BaseAgent
from .earnings import EarningsLedger

logger = logging.getLogger(__name__)


class DispatchAgent(BaseAgent):
    """Assigns orders to couriers and keeps order, courier and assignment in step."""

    def __init__(
        self,
        agent_id: str,
        event_bus: EventBus,
        order_system: DummyOrderSystem,
        courier_registry: DummyCourierRegistry,
        selector: AssignmentSelector | None = None,
        ledger: EarningsLedger | None = None,
    ):
        super().__init__(agent_id, ServiceType.DISPATCH, event_bus)
        self.order_system = order_system
        self.courier_registry = courier_registry
        self.selector = selector or AssignmentSelector()
        self.ledger = ledger or EarningsLedger()
        # order_id -> the single non-terminal assignment for that order
        self.active_assignments: dict[str, Assignment] = {}
        self.register_event_handlers()

    def register_event_handlers(self) -> None:
        self.event_bus.subscribe(DeliveryEventType.ORDER_AVAILABLE.value, self.handle_order_available)
        self.event_bus.subscribe(DeliveryEventType.ASSIGNMENT_STATUS_UPDATE.value, self.handle_status_update)
        self.event_bus.subscribe(DeliveryEventType.LOCATION_UPDATE.value, self.handle_location_update)

    async def handle_location_update(self, event: DeliveryEvent) -> None:
        courier_id = event.payload.get("courier_id")
        try:
            location = GeoPoint(event.payload["lat"], event.payload["lng"])
        except (KeyError, MalformedInputError) as e:
            logger.error(f"Ignoring location update for {courier_id}: {e}")
            return
        self.courier_registry.update_location(courier_id, location)

    async def handle_order_available(self, event: DeliveryEvent) -> None:
        order_id = event.payload.get("order_id")
        if not order_id:
            logger.error("Missing order_id in order.available event")
            return
        if order_id in self.active_assignments:
            logger.warning(f"Order {order_id} already has an active assignment; ignoring.")
            return

        order = await self.order_system.get_order(order_id)
        if order is None:
            logger.error(f"Order {order_id} not found when handling order.available.")
            return

        try:
            await self.dispatch_order(order)
        except DispatchError as e:
            await self.handle_exception(e, {"stage": "assignment", "order_id": order_id}, order=order)

    async def dispatch_order(self, order: Order, patient: PatientSnapshot | None = None) -> Assigned | NotFound:
        """Run the selector for ``order`` and publish the outcome."""
        if order.order_id in self.active_assignments:
            raise DuplicateAssignmentError(f"Order {order.order_id} already has an active assignment")

        outcome = self.selector.assign_order(order, self.courier_registry.list_couriers(), patient)
        if isinstance(outcome, NotFound):
            await self.publish_event(
                DeliveryEventType.ORDER_UNASSIGNED,
                {
                    "order_id": outcome.order_id,
                    "reason": outcome.reason,
                    "candidates_considered": outcome.candidates_considered,
                },
            )
            return outcome

        order.update_status(
            OrderStatus.SEEKING_COURIER,
            self.service_type,
            {"courier_id": outcome.courier.courier_id},
        )
        outcome.courier.start_delivery(order.order_id)
        self.active_assignments[order.order_id] = outcome.assignment

        await self.publish_event(
            DeliveryEventType.ORDER_ASSIGNED,
            {
                "order_id": order.order_id,
                "courier_id": outcome.courier.courier_id,
                "score": outcome.score,
                "distance": outcome.distance,
                "assignment": outcome.assignment.to_payload(),
            },
        )
        return outcome

    async def handle_status_update(self, event: DeliveryEvent) -> None:
        order_id = event.payload.get("order_id")
        status = event.payload.get("status")
        if not order_id or not status:
            logger.error(f"Malformed assignment.status_update payload: {event.payload}")
            return

        try:
            await self.update_assignment_status(order_id, AssignmentStatus(status), event.payload.get("reason"))
        except (ValueError, DispatchError) as e:
            # ValueError covers status strings that are not an AssignmentStatus
            await self.handle_exception(e, {"stage": "status_update", "order_id": order_id, "status": status})

    async def update_assignment_status(
        self,
        order_id: str,
        status: AssignmentStatus,
        reason: str | None = None,
    ) -> Assignment:
        """Apply a status change to the order's active assignment."""
        assignment = self.active_assignments.get(order_id)
        if assignment is None:
            raise UnknownAssignmentError(f"No active assignment for order {order_id}")

        order = await self.order_system.get_order(order_id)
        courier = self.courier_registry.get_courier(assignment.courier_id)
        assignment.transition_to(status, reason)
        logger.info(f"Assignment for order {order_id} is now {assignment.status.value}")

        if assignment.status == AssignmentStatus.DELIVERING:
            if order is not None:
                order.update_status(OrderStatus.DELIVERING, self.service_type, {"courier_id": assignment.courier_id})
            return assignment

        del self.active_assignments[order_id]

        if assignment.status == AssignmentStatus.CANCELLED:
            if courier is not None:
                courier.finish_delivery(completed=False)
            if order is not None and order.status == OrderStatus.DELIVERING:
                order.update_status(OrderStatus.SEEKING_COURIER, self.service_type, {"reason": reason})
            return assignment

        if order is not None:
            order.update_status(OrderStatus.COMPLETED, self.service_type, {"courier_id": assignment.courier_id})
            await self.order_system.complete_order(order_id)
        if courier is not None:
            courier.finish_delivery(assignment.estimated_earnings)
        self.ledger.record(assignment.courier_id, order_id, assignment.estimated_earnings, assignment.delivered_at)
        await self.publish_event(
            DeliveryEventType.EARNINGS_UPDATE,
            {
                "courier_id": assignment.courier_id,
                "order_id": order_id,
                "amount": assignment.estimated_earnings,
                "daily_total": self.ledger.daily_total(assignment.courier_id),
                "week_to_date": self.ledger.week_to_date(assignment.courier_id),
            },
        )
        return assignment
