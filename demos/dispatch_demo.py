"""
Demonstrates an order flowing from the courier feed through dispatch to drop-off.
"""

import asyncio
import random

import pandas as pd

from agents.assignment import AssignmentSelector
from agents.compliance import check_compliance
from agents.courier_feed import CourierFeed
from agents.dispatch import DispatchAgent
from agents.navigation import DeliveryNavigator
from connectors.dummy_courier_registry import DummyCourierRegistry
from config.config import CourierFeedConfig
from connectors.dummy_order_system import DummyOrderSystem
from models.enums import AssignmentStatus, DeliveryEventType, ServiceType
from models.events import DeliveryEvent
from utils.event_bus import EventBus
from utils.logger import get_logger

logger = get_logger("dispatch_demo")


def ranking_table(selector: AssignmentSelector, order, registry: DummyCourierRegistry) -> pd.DataFrame:
    ranked = selector.rank_candidates(order.pickup, registry.list_couriers())
    return pd.DataFrame(
        [
            {
                "courier": r.courier.courier_id,
                "distance_mi": round(r.distance, 2),
                "distance": round(r.breakdown.distance, 3),
                "rating": round(r.breakdown.rating, 3),
                "experience": round(r.breakdown.experience, 3),
                "workload": r.breakdown.workload,
                "score": round(r.score, 3),
            }
            for r in ranked
        ]
    )


async def run_dispatch_demo():
    logger.info("--- Starting Dispatch Demo ---")
    rng = random.Random(7)
    event_bus = EventBus()
    order_system = DummyOrderSystem(rng=rng)
    registry = DummyCourierRegistry()
    selector = AssignmentSelector(rng=rng)
    dispatcher = DispatchAgent("dispatch-1", event_bus, order_system, registry, selector=selector)
    config = CourierFeedConfig.from_env()
    feed = CourierFeed("BUDDY-001", order_system, event_bus=event_bus, config=config)

    async def log_event(event: DeliveryEvent) -> None:
        logger.info(f"[{event.source.value}] {event.event_type}: {sorted(event.payload)}")

    feed.subscribe(log_event)

    await feed.start()
    # Offer one order right away instead of waiting for the timer
    order = await feed.offer_order()
    assignment = dispatcher.active_assignments.get(order.order_id)
    if assignment is None:
        logger.warning("No courier could take the order.")
        await feed.stop()
        return None

    table = ranking_table(selector, order, registry)
    logger.info(f"Couriers still eligible after assignment:\n{table.to_string(index=False)}")
    compliance = check_compliance(assignment.patient.possession, assignment.items)
    logger.info(f"Compliance: {compliance.message}")

    await event_bus.publish(
        DeliveryEvent(
            event_type=DeliveryEventType.ASSIGNMENT_STATUS_UPDATE.value,
            payload={"order_id": order.order_id, "status": AssignmentStatus.DELIVERING.value},
            source=ServiceType.CUSTOMER,
        )
    )
    navigator = DeliveryNavigator(assignment, is_mock=order_system.is_mock_order(order), config=config)
    if navigator.complete_pickup() and assignment.courier_id == feed.courier_id:
        # The feed switches its destination to the drop-off
        await feed.send(DeliveryEventType.ORDER_PICKED_UP, {"order_id": order.order_id})
    if navigator.complete_delivery(verified=True):
        await event_bus.publish(
            DeliveryEvent(
                event_type=DeliveryEventType.ASSIGNMENT_STATUS_UPDATE.value,
                payload={"order_id": order.order_id, "status": AssignmentStatus.COMPLETED.value},
                source=ServiceType.CUSTOMER,
            )
        )

    await feed.stop()
    history = await order_system.get_order_history()
    logger.info(f"Orders in history: {[o.order_id for o in history]}")
    courier_id = assignment.courier_id
    logger.info(f"Today's earnings for {courier_id}: ${dispatcher.ledger.daily_total(courier_id):.2f}")
    logger.info("--- Dispatch Demo Complete ---")
    return assignment


if __name__ == "__main__":
    asyncio.run(run_dispatch_demo())
