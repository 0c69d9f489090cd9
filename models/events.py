"""
Data models for events exchanged on the event bus.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import ServiceType


class DeliveryEvent(BaseModel):
    """Base event for dispatch interactions."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str  # Usually a DeliveryEventType value
    payload: dict[str, Any]
    source: ServiceType
    timestamp: datetime = Field(default_factory=datetime.now)
