"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel

from ..availability.schemas import SlotIn

BookingPriority = Literal["low", "medium", "high"]


class BookingCreate(BaseModel):
    """Schema for booking a slot. ``slot.start`` selects the slot"""

    provider_id: int
    date: dt.date
    slot: SlotIn
    payment_reference: Optional[str] = None
    priority: BookingPriority = "medium"


class BookingStatusUpdate(BaseModel):
    status: Literal["completed", "cancelled"]


class BookingResponse(BaseModel):
    id: int
    consumer_id: str
    provider_id: int
    slot_id: Optional[int] = None
    date: dt.date
    slot_start: dt.datetime
    slot_end: dt.datetime
    category: str
    status: str
    priority: str
    payment_reference: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None
    completed_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
