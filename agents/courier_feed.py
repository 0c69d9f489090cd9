"""
Courier feed: the event source a courier's app listens to.

It offers mock orders on a timer, reports the courier's position and relays
messages from the app. Time and position come from injected providers so the
feed can be driven deterministically.
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Protocol

from config.config import CourierFeedConfig
from connectors.dummy_order_system import DummyOrderSystem
from models.delivery import GeoPoint, Order, to_payload
from models.enums import AssignmentStatus, DeliveryEventType, ServiceType
from models.errors import DispatchError, LocationUnavailableError
from models.events import DeliveryEvent
from utils.event_bus import ALL_EVENTS, EventBus, Handler
from utils.geo import EARTH_RADIUS_METERS, distance_between, seconds_to_cover

from .base import BaseAgent

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class LocationProvider(Protocol):
    async def current_location(self) -> GeoPoint:
        """Return the device position or raise LocationUnavailableError."""
        ...


class StaticLocationProvider:
    """Always reports the same position."""

    def __init__(self, location: GeoPoint):
        self.location = location

    async def current_location(self) -> GeoPoint:
        return self.location


class CourierFeed(BaseAgent):
    """Event source for one courier with an explicit start/stop lifecycle."""

    def __init__(
        self,
        courier_id: str,
        order_system: DummyOrderSystem,
        event_bus: EventBus | None = None,
        config: CourierFeedConfig | None = None,
        clock: Clock | None = None,
        location_provider: LocationProvider | None = None,
    ):
        super().__init__(f"feed-{courier_id}", ServiceType.COURIER_FEED, event_bus or EventBus())
        self.courier_id = courier_id
        self.order_system = order_system
        self.config = config or CourierFeedConfig()
        self.clock = clock or SystemClock()
        self.home_location = GeoPoint(*self.config.home_location)
        self.location_provider = location_provider or StaticLocationProvider(self.home_location)
        self.user_location: GeoPoint = self.home_location

        self.is_connected = False
        self.is_connecting = False
        self.active_delivery = False
        self.active_order_id: str | None = None
        self.delivery_destination: GeoPoint | None = None
        self.dropoff_location: GeoPoint | None = None
        self._tasks: list[asyncio.Task] = []
        self.register_event_handlers()

    # --- subscribe / publish ---

    def register_event_handlers(self) -> None:
        self.event_bus.subscribe(DeliveryEventType.ORDER_ASSIGNED.value, self.handle_order_assigned)
        self.event_bus.subscribe(DeliveryEventType.ORDER_PICKED_UP.value, self.handle_order_picked_up)
        self.event_bus.subscribe(DeliveryEventType.ASSIGNMENT_STATUS_UPDATE.value, self.handle_status_update)

    def subscribe(self, handler: Handler, event_type: str = ALL_EVENTS) -> None:
        self.event_bus.subscribe(event_type, handler)

    def unsubscribe(self, handler: Handler, event_type: str = ALL_EVENTS) -> None:
        self.event_bus.unsubscribe(event_type, handler)

    async def publish(self, event: DeliveryEvent) -> None:
        await self.event_bus.publish(event)

    # --- lifecycle ---

    async def start(self) -> None:
        if self.is_connected or self.is_connecting:
            logger.info(f"Feed for {self.courier_id} already connected or connecting")
            return

        logger.info(f"Feed for {self.courier_id} connecting...")
        self.is_connecting = True
        await self.clock.sleep(self.config.connect_delay_seconds)
        if not self.is_connecting:
            logger.info(f"Connection attempt for {self.courier_id} cancelled")
            return

        self.is_connected = True
        self.is_connecting = False
        logger.info(f"Feed for {self.courier_id} connected")
        await self.publish_event(
            DeliveryEventType.CONNECTION_CHANGED, {"courier_id": self.courier_id, "connected": True}
        )
        self._tasks = [
            asyncio.create_task(self._order_loop()),
            asyncio.create_task(self._location_loop()),
        ]

    async def stop(self) -> None:
        logger.info(f"Feed for {self.courier_id} disconnecting...")
        self.is_connecting = False
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        was_connected = self.is_connected
        self.is_connected = False
        if was_connected:
            await self.publish_event(
                DeliveryEventType.CONNECTION_CHANGED, {"courier_id": self.courier_id, "connected": False}
            )
        logger.info(f"Feed for {self.courier_id} disconnected")

    async def _order_loop(self) -> None:
        while self.is_connected:
            await self.clock.sleep(self.config.order_interval_seconds)
            try:
                await self.tick()
            except DispatchError as e:
                await self.handle_exception(e, {"stage": "order_loop", "courier_id": self.courier_id})

    async def _location_loop(self) -> None:
        while self.is_connected:
            try:
                await self.refresh_location()
            except DispatchError as e:
                await self.handle_exception(e, {"stage": "location_loop", "courier_id": self.courier_id})
            await self.clock.sleep(self.config.location_interval_seconds)

    # --- order offers ---

    def set_active_delivery(self, active: bool, destination: GeoPoint | None = None) -> None:
        self.active_delivery = active
        self.delivery_destination = destination if active else None

    def seconds_to_destination(self) -> float:
        if self.delivery_destination is None:
            return math.inf
        meters = distance_between(self.user_location, self.delivery_destination, radius=EARTH_RADIUS_METERS)
        return seconds_to_cover(meters, self.config.average_speed_mps)

    def should_offer_orders(self) -> bool:
        """Offer work when idle, or when the current drop-off is a few minutes away."""
        if not self.active_delivery:
            return True
        return self.seconds_to_destination() <= self.config.near_dropoff_seconds

    async def tick(self) -> Order | None:
        """One timer step: offer an order if conditions allow."""
        if not self.is_connected:
            return None
        if not self.should_offer_orders():
            logger.debug(f"Courier {self.courier_id} is mid-delivery; no new offer")
            return None
        return await self.offer_order()

    async def offer_order(self) -> Order:
        order = self.order_system.generate_mock_order()
        await self.order_system.place_order(order)
        logger.info(f"Offering order {order.order_id} to courier {self.courier_id}")
        await self.publish_event(
            DeliveryEventType.ORDER_AVAILABLE,
            {"order_id": order.order_id, "courier_id": self.courier_id, "order": to_payload(order)},
        )
        return order

    # --- location ---

    async def refresh_location(self) -> GeoPoint:
        try:
            location = await self.location_provider.current_location()
        except LocationUnavailableError as e:
            logger.error(f"Location unavailable for {self.courier_id}: {e}. Using home location.")
            self.user_location = self.home_location
            return self.home_location

        self.user_location = location
        await self.update_location(location)
        return location

    async def update_location(self, location: GeoPoint) -> bool:
        return await self.send(
            DeliveryEventType.LOCATION_UPDATE,
            {
                "courier_id": self.courier_id,
                "lat": location.lat,
                "lng": location.lng,
                "timestamp": (location.recorded_at or self.clock.now()).isoformat(),
            },
        )

    # --- messages from the app ---

    async def send(self, message_type: DeliveryEventType, payload: dict[str, Any]) -> bool:
        """Relay a message from the courier app. Dropped when disconnected."""
        message_type = DeliveryEventType(message_type)
        if not self.is_connected:
            logger.warning(f"Message {message_type.value} not sent - feed not connected")
            return False

        if message_type == DeliveryEventType.ORDER_DECLINED:
            logger.info(f"Order declined by {self.courier_id}: {payload.get('order_id')}")
            await self.publish_event(message_type, {**payload, "courier_id": self.courier_id})
        elif message_type == DeliveryEventType.ORDER_PICKED_UP:
            logger.info(f"Order picked up by {self.courier_id}: {payload.get('order_id')}")
            await self.publish_event(message_type, {**payload, "courier_id": self.courier_id})
        elif message_type == DeliveryEventType.LOCATION_UPDATE:
            await self.publish_event(message_type, payload)
        elif message_type == DeliveryEventType.PING:
            logger.debug(f"Ping from {self.courier_id}")
        else:
            logger.warning(f"Unsupported message type from app: {message_type.value}")
            return False
        return True

    # --- reactions to dispatch ---

    async def handle_order_assigned(self, event: DeliveryEvent) -> None:
        if event.payload.get("courier_id") != self.courier_id:
            return
        route = event.payload.get("assignment", {}).get("route", {})
        self.active_order_id = event.payload.get("order_id")
        self.dropoff_location = _route_point(route.get("delivery"))
        # Heading to the dispensary until the pickup is reported
        self.set_active_delivery(True, _route_point(route.get("pickup")))

    async def handle_order_picked_up(self, event: DeliveryEvent) -> None:
        if event.payload.get("order_id") != self.active_order_id or self.active_order_id is None:
            return
        logger.info(f"Courier {self.courier_id} heading to drop-off for order {self.active_order_id}")
        self.set_active_delivery(True, self.dropoff_location)

    async def handle_status_update(self, event: DeliveryEvent) -> None:
        if event.payload.get("order_id") != self.active_order_id:
            return
        if event.payload.get("status") in (AssignmentStatus.COMPLETED.value, AssignmentStatus.CANCELLED.value):
            self.active_order_id = None
            self.dropoff_location = None
            self.set_active_delivery(False)


def _route_point(stop: dict[str, Any] | None) -> GeoPoint | None:
    return GeoPoint(stop["lat"], stop["lng"]) if stop else None
