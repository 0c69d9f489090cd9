"""
Base class for event-driven dispatch agents.
"""

import logging
from typing import Any

from models.delivery import Order
from models.enums import DeliveryEventType, ServiceType
from models.events import DeliveryEvent
from utils.event_bus import EventBus

logger_base = logging.getLogger(__name__)


class BaseAgent:
    """Base class for components that talk over the event bus"""

    def __init__(self, agent_id: str, service_type: ServiceType, event_bus: EventBus):
        self.agent_id = agent_id
        self.service_type = service_type
        self.event_bus = event_bus
        # Subclasses call register_event_handlers() once their state is set up

    def register_event_handlers(self) -> None:
        """Register for events this agent cares about"""
        pass

    async def publish_event(self, event_type: str | DeliveryEventType, payload: dict[str, Any]) -> DeliveryEvent | None:
        """Publish an event to the event bus"""
        if self.event_bus is None:
            logger_base.error(f"Agent {self.agent_id} has no event bus to publish to.")
            return None

        event = DeliveryEvent(
            event_type=getattr(event_type, "value", event_type),
            payload=payload,
            source=self.service_type,
        )
        await self.event_bus.publish(event)
        return event

    async def handle_exception(
        self,
        exception: Exception,
        context: dict[str, Any],
        order: Order | None = None,
    ) -> None:
        """Log a processing failure, note it on the order and broadcast it"""
        error_details = {
            "error_type": type(exception).__name__,
            "error_message": str(exception),
            "context": context,
            "agent_id": self.agent_id,
        }
        logger_base.error(
            f"Exception in {self.service_type.value} agent ({self.agent_id}): {exception}",
            exc_info=True,
        )

        if order is not None:
            order.add_event(self.service_type, "exception", error_details)
            error_details["order_id"] = order.order_id

        await self.publish_event(DeliveryEventType.SYSTEM_EXCEPTION, {"error_details": error_details})
