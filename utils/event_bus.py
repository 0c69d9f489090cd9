"""
Simple asynchronous event bus connecting the courier feed, the dispatcher and
any UI-side listeners.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from models.events import DeliveryEvent

logger_event_bus = logging.getLogger(__name__)

# Subscribing to this event type receives every published event
ALL_EVENTS = "*"

Handler = Callable[[DeliveryEvent], Coroutine[Any, Any, None]]


class EventBus:
    """In-process publish/subscribe bus with async handlers."""

    def __init__(self):
        self.subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_type: str, callback: Handler) -> None:
        """Subscribe to an event type (or ``ALL_EVENTS``)."""
        if not callable(callback):
            raise TypeError("Callback must be a callable async function.")
        event_type = str(getattr(event_type, "value", event_type))
        if event_type not in self.subscribers:
            self.subscribers[event_type] = []
        if callback not in self.subscribers[event_type]:  # Avoid duplicate subscriptions
            self.subscribers[event_type].append(callback)
            logger_event_bus.debug(f"Callback {_name(callback)} subscribed to {event_type}")
        else:
            logger_event_bus.warning(f"Callback {_name(callback)} already subscribed to {event_type}")

    def unsubscribe(self, event_type: str, callback: Handler) -> None:
        """Unsubscribe a specific callback from an event type."""
        event_type = str(getattr(event_type, "value", event_type))
        if event_type in self.subscribers:
            try:
                self.subscribers[event_type].remove(callback)
                logger_event_bus.debug(f"Callback {_name(callback)} unsubscribed from {event_type}")
                if not self.subscribers[event_type]:  # Clean up empty list
                    del self.subscribers[event_type]
            except ValueError:
                logger_event_bus.warning(f"Callback {_name(callback)} not found for event type {event_type}")

    async def publish(self, event: DeliveryEvent) -> None:
        """Publish an event to subscribers of its type and to wildcard subscribers."""
        if not isinstance(event, DeliveryEvent):
            logger_event_bus.error(f"Attempted to publish invalid event type: {type(event)}")
            return

        logger_event_bus.info(f"Event published: {event.event_type} from {event.source.value}")
        callbacks = list(self.subscribers.get(event.event_type, []))
        if event.event_type != ALL_EVENTS:
            callbacks += [cb for cb in self.subscribers.get(ALL_EVENTS, []) if cb not in callbacks]
        if not callbacks:
            return

        # Gather tasks to run handlers concurrently
        tasks = [asyncio.create_task(callback(event)) for callback in callbacks]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for callback, result in zip(callbacks, results):
            if isinstance(result, Exception):
                logger_event_bus.error(
                    f"Error in subscriber callback '{_name(callback)}' for event {event.event_type}: {result}",
                    exc_info=False,
                )


def _name(callback: Any) -> str:
    return getattr(callback, "__name__", type(callback).__name__)
