"""
Centralized Enum definitions for the project.
"""

from enum import Enum


class ServiceType(str, Enum):
    """Components that publish events on the bus"""

    DISPATCH = "dispatch"
    COURIER_FEED = "courier_feed"
    ORDER_SYSTEM = "order_system"
    CUSTOMER = "customer"
    SYSTEM = "system"
    TEST = "test"


class CourierStatus(str, Enum):
    """Availability of a courier (soft states, couriers are never deleted)"""

    AVAILABLE = "available"
    DELIVERING = "delivering"
    OFFLINE = "offline"


class VehicleType(str, Enum):
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    BICYCLE = "bicycle"


class OrderStatus(str, Enum):
    """Lifecycle of a customer order"""

    PREPARING = "preparing"
    SEEKING_COURIER = "seeking_courier"
    DELIVERING = "delivering"
    COMPLETED = "completed"


class AssignmentStatus(str, Enum):
    """Lifecycle of an order-to-courier assignment"""

    SEEKING_COURIER = "seeking_courier"
    DELIVERING = "delivering"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ItemType(str, Enum):
    """Product categories relevant to possession limits"""

    FLOWER = "flower"
    CONCENTRATE = "concentrate"
    EDIBLE = "edible"
    OTHER = "other"


class DeliveryStep(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class DeliveryEventType(str, Enum):
    """Event types exchanged between the feed, the dispatcher and the UI"""

    ORDER_AVAILABLE = "order.available"
    ORDER_ASSIGNED = "order.assigned"
    ORDER_UNASSIGNED = "order.unassigned"
    ORDER_DECLINED = "order.declined"
    ORDER_PICKED_UP = "order.picked_up"
    ASSIGNMENT_STATUS_UPDATE = "assignment.status_update"
    LOCATION_UPDATE = "location.update"
    EARNINGS_UPDATE = "earnings.update"
    CONNECTION_CHANGED = "feed.connection_changed"
    PING = "feed.ping"
    SYSTEM_EXCEPTION = "system.exception"
