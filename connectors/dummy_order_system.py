"""
Module: connectors.dummy_order_system

Provides a dummy in-memory order system: mock dispensaries and products, mock
order generation, active orders and an order history.
"""

import asyncio
import logging
import random
import string

from models.delivery import Order, OrderLineItem, RouteLocation
from models.enums import OrderStatus

logger = logging.getLogger(__name__)

# Default customer drop-off (Lawnwood Circle, Baltimore)
HOME_ADDRESS = RouteLocation("2110 Lawnwood Cir, Baltimore, MD 21207", 39.3476, -76.7379)

MOCK_DISPENSARIES = [
    RouteLocation("StoreHouse Dispensary", 39.3476, -76.7379),
    RouteLocation("GreenLeaf Wellness", 39.3176, -76.6159),
]

MOCK_PRODUCTS = [
    {"name": "Blue Dream", "price": 50.0, "size": "3.5g"},
    {"name": "GSC", "price": 60.0, "size": "3.5g"},
    {"name": "Purple Punch", "price": 55.0, "size": "3.5g"},
]


class DummyOrderSystem:
    """
    Dummy order management system connector for demonstration purposes.
    """

    _latency = 0.01

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._orders: dict[str, Order] = {}
        self._history: list[Order] = []

    def generate_mock_order(self) -> Order:
        """Build a random order from a mock dispensary to the default drop-off."""
        dispensary = self.rng.choice(MOCK_DISPENSARIES)
        product = self.rng.choice(MOCK_PRODUCTS)
        order_id = "".join(self.rng.choice(string.ascii_lowercase + string.digits) for _ in range(9))
        order = Order(
            order_id=order_id,
            items=[
                OrderLineItem(
                    name=product["name"],
                    quantity=self.rng.randint(1, 2),
                    unit_price=product["price"],
                    weight=product["size"],
                )
            ],
            pickup=RouteLocation(dispensary.address, dispensary.lat, dispensary.lng),
            delivery=RouteLocation(HOME_ADDRESS.address, HOME_ADDRESS.lat, HOME_ADDRESS.lng),
            subtotal=100.0,
            delivery_fee=15.0,
            tip=10.0,
            total=125.0,
            status=OrderStatus.SEEKING_COURIER,
            delivery_time="30-35 min",
        )
        logger.debug(f"Generated mock order {order.order_id} from {dispensary.address}")
        return order

    def is_mock_order(self, order: Order) -> bool:
        """Every order in this system is a mock order."""
        return True

    async def place_order(self, order: Order) -> Order:
        await asyncio.sleep(self._latency)
        if order.order_id in self._orders:
            logger.warning(f"Order {order.order_id} already placed; replacing it.")
        self._orders[order.order_id] = order
        return order

    async def get_order(self, order_id: str) -> Order | None:
        await asyncio.sleep(self._latency)
        return self._orders.get(order_id)

    async def complete_order(self, order_id: str) -> Order | None:
        """Move an order out of the active set and into history."""
        await asyncio.sleep(self._latency)
        order = self._orders.pop(order_id, None)
        if order is None:
            logger.warning(f"Cannot archive unknown order {order_id}.")
            return None
        self._history.append(order)
        logger.info(f"Order {order_id} archived with status {order.status.value}.")
        return order

    async def get_order_history(self) -> list[Order]:
        await asyncio.sleep(self._latency)
        return list(self._history)

    def active_orders(self) -> list[Order]:
        return list(self._orders.values())
