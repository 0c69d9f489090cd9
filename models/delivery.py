"""
Data models for delivery dispatch.
Includes couriers, orders, assignments and the outcomes of assigning an order.
"""

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from utils.geo import validate_coordinates

from .compliance import PossessionRecord
from .enums import (
    AssignmentStatus,
    CourierStatus,
    ItemType,
    OrderStatus,
    ServiceType,
    VehicleType,
)
from .errors import InvalidTransitionError, MalformedInputError


def _require_non_negative(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"{name} must be numeric, got {value!r}") from e
    if not math.isfinite(number) or number < 0:
        raise MalformedInputError(f"{name} must be a non-negative number, got {value!r}")
    return number


def to_payload(value: Any) -> Any:
    """Convert records into plain JSON-friendly structures for event payloads."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_payload(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_payload(v) for v in value]
    return value


@dataclass
class GeoPoint:
    """A validated latitude/longitude pair in degrees."""

    lat: float
    lng: float
    recorded_at: datetime | None = None

    def __post_init__(self):
        self.lat, self.lng = validate_coordinates(self.lat, self.lng)


@dataclass
class RouteLocation:
    """A named stop on a route (dispensary or customer address)."""

    address: str
    lat: float
    lng: float

    def __post_init__(self):
        self.lat, self.lng = validate_coordinates(self.lat, self.lng)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lng)


@dataclass
class VehicleInfo:
    type: VehicleType = VehicleType.CAR
    model: str | None = None
    color: str | None = None
    license_plate: str | None = None


@dataclass
class Courier:
    """A delivery driver ("buddy") who can be assigned orders."""

    courier_id: str
    name: str
    rating: float
    total_deliveries: int = 0
    status: CourierStatus = CourierStatus.OFFLINE
    location: GeoPoint | None = None  # None means the courier cannot be located
    current_order: str | None = None
    mmcc_id: str | None = None
    vehicle: VehicleInfo = field(default_factory=VehicleInfo)
    year_to_date_earnings: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.courier_id:
            raise MalformedInputError("Courier requires a courier_id")
        rating = _require_non_negative("rating", self.rating)
        if rating > 5:
            raise MalformedInputError(f"rating must be between 0 and 5, got {self.rating}")
        self.rating = rating
        if isinstance(self.total_deliveries, bool) or not isinstance(self.total_deliveries, int) or self.total_deliveries < 0:
            raise MalformedInputError(f"total_deliveries must be a non-negative integer, got {self.total_deliveries!r}")
        self.year_to_date_earnings = _require_non_negative("year_to_date_earnings", self.year_to_date_earnings)
        self.status = CourierStatus(self.status)

    @property
    def is_busy(self) -> bool:
        return self.current_order is not None

    def update_location(self, location: GeoPoint) -> None:
        self.location = location

    def set_status(self, status: CourierStatus) -> None:
        self.status = CourierStatus(status)

    def start_delivery(self, order_id: str) -> None:
        if self.status != CourierStatus.AVAILABLE:
            raise InvalidTransitionError(f"Courier {self.courier_id}", self.status.value, CourierStatus.DELIVERING.value)
        self.status = CourierStatus.DELIVERING
        self.current_order = order_id

    def finish_delivery(self, earnings: float = 0.0, completed: bool = True) -> None:
        """Release the courier after a delivery ends (completed or cancelled)."""
        self.current_order = None
        self.status = CourierStatus.AVAILABLE
        if completed:
            self.total_deliveries += 1
            self.year_to_date_earnings += _require_non_negative("earnings", earnings)


@dataclass
class OrderLineItem:
    """A product line in a customer order."""

    name: str
    quantity: int
    unit_price: float
    item_type: str | None = None
    weight: str | None = None  # e.g. "3.5g"
    thc: str | None = None  # e.g. "20%"

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise MalformedInputError(f"quantity must be a positive integer, got {self.quantity!r}")
        self.unit_price = _require_non_negative("unit_price", self.unit_price)


# Forward moves only, except a delivering order can go back to seeking a
# courier when its assignment is cancelled.
ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PREPARING: {OrderStatus.SEEKING_COURIER},
    OrderStatus.SEEKING_COURIER: {OrderStatus.DELIVERING},
    OrderStatus.DELIVERING: {OrderStatus.COMPLETED, OrderStatus.SEEKING_COURIER},
    OrderStatus.COMPLETED: set(),
}


@dataclass
class Order:
    """Represents a customer order awaiting delivery."""

    order_id: str
    items: list[OrderLineItem]
    pickup: RouteLocation
    delivery: RouteLocation
    subtotal: float = 0.0
    delivery_fee: float = 0.0
    tip: float = 0.0
    total: float = 0.0
    status: OrderStatus = OrderStatus.PREPARING
    delivery_option: str = "delivery"
    delivery_time: str | None = None  # Display window, e.g. "30-35 min"
    created_at: datetime = field(default_factory=datetime.now)
    history: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if not self.order_id:
            raise MalformedInputError("Order requires an order_id")
        for name in ("subtotal", "delivery_fee", "tip", "total"):
            setattr(self, name, _require_non_negative(name, getattr(self, name)))
        if self.delivery_option not in ("delivery", "pickup"):
            raise MalformedInputError(f"Unknown delivery option: {self.delivery_option!r}")
        self.status = OrderStatus(self.status)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def add_event(self, source: ServiceType, action: str, details: dict[str, Any]) -> None:
        """Add an event to the order history"""
        self.history.append(
            {
                "timestamp": datetime.now().isoformat(),
                "source": source.value,
                "action": action,
                "details": details,
            }
        )

    def update_status(self, new_status: OrderStatus, source: ServiceType, details: dict[str, Any] | None = None) -> None:
        """Update order status with tracking"""
        old_status = self.status
        if new_status == old_status:
            return
        if new_status not in ORDER_TRANSITIONS[old_status]:
            raise InvalidTransitionError(f"Order {self.order_id}", old_status.value, new_status.value)
        self.status = new_status
        self.add_event(source, f"status_change_{old_status.value}_to_{new_status.value}", details or {})


@dataclass
class PatientSnapshot:
    name: str
    mmcc_id: str
    possession: PossessionRecord = field(default_factory=PossessionRecord)


@dataclass
class DispensaryInfo:
    name: str
    license: str
    address: str
    lat: float
    lng: float


@dataclass
class DeliveryItem:
    """An item as the courier and the compliance check see it."""

    name: str
    item_type: ItemType
    quantity: str  # grams, e.g. "3.5g"
    thc: str = "0%"

    def __post_init__(self):
        try:
            self.item_type = ItemType(self.item_type)
        except ValueError as e:
            raise MalformedInputError(f"Unknown item type: {self.item_type!r}") from e


@dataclass
class RouteInfo:
    pickup: RouteLocation
    delivery: RouteLocation
    estimated_distance: float  # miles
    estimated_duration: int  # minutes


TERMINAL_ASSIGNMENT_STATES = {AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED}


@dataclass
class Assignment:
    """Binds one order to one courier and tracks the delivery."""

    order_id: str
    courier_id: str
    patient: PatientSnapshot
    dispensary: DispensaryInfo
    delivery: RouteLocation
    items: list[DeliveryItem]
    route: RouteInfo
    estimated_earnings: float = 0.0
    status: AssignmentStatus = AssignmentStatus.SEEKING_COURIER
    assigned_at: datetime = field(default_factory=datetime.now)
    accepted_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_ASSIGNMENT_STATES

    def _move(self, target: AssignmentStatus, allowed_from: set[AssignmentStatus]) -> None:
        if self.status not in allowed_from:
            raise InvalidTransitionError(f"Assignment for order {self.order_id}", self.status.value, target.value)
        self.status = target

    def accept(self, at: datetime | None = None) -> None:
        self._move(AssignmentStatus.DELIVERING, {AssignmentStatus.SEEKING_COURIER})
        self.accepted_at = at or datetime.now()

    def mark_picked_up(self, at: datetime | None = None) -> None:
        if self.status != AssignmentStatus.DELIVERING or self.picked_up_at is not None:
            raise InvalidTransitionError(f"Assignment for order {self.order_id}", self.status.value, "picked_up")
        self.picked_up_at = at or datetime.now()

    def complete(self, at: datetime | None = None) -> None:
        self._move(AssignmentStatus.COMPLETED, {AssignmentStatus.DELIVERING})
        self.delivered_at = at or datetime.now()

    def cancel(self, reason: str | None = None, at: datetime | None = None) -> None:
        self._move(AssignmentStatus.CANCELLED, {AssignmentStatus.SEEKING_COURIER, AssignmentStatus.DELIVERING})
        self.cancelled_at = at or datetime.now()
        self.cancel_reason = reason

    def transition_to(self, status: AssignmentStatus, reason: str | None = None, at: datetime | None = None) -> None:
        """Apply a status change requested by an external caller."""
        status = AssignmentStatus(status)
        if status == AssignmentStatus.DELIVERING:
            self.accept(at)
        elif status == AssignmentStatus.COMPLETED:
            self.complete(at)
        elif status == AssignmentStatus.CANCELLED:
            self.cancel(reason, at)
        else:
            raise InvalidTransitionError(f"Assignment for order {self.order_id}", self.status.value, status.value)

    def to_payload(self) -> dict[str, Any]:
        return to_payload(self)


@dataclass
class Assigned:
    """A courier was found for the order."""

    courier: Courier
    assignment: Assignment
    score: float
    distance: float


@dataclass
class NotFound:
    """No eligible courier exists for the order. Not an error."""

    order_id: str
    reason: str
    candidates_considered: int = 0
