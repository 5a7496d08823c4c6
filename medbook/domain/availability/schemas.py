"""Availability domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import to_naive_utc

RecurrencePolicy = Literal["none", "daily", "weekly", "monthly"]


class SlotIn(BaseModel):
    """Schema for a proposed slot"""

    start: dt.datetime
    end: dt.datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_timezone(cls, v: dt.datetime) -> dt.datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_interval(self):
        if self.start >= self.end:
            raise ValueError("slot start must be before end")
        return self


class WindowCreate(BaseModel):
    """Schema for declaring availability on a date"""

    date: dt.date
    slots: list[SlotIn]
    recurrence: RecurrencePolicy = "none"

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v: list[SlotIn]) -> list[SlotIn]:
        if not v:
            raise ValueError("at least one slot is required")
        return v


class WindowUpdate(BaseModel):
    """Schema for editing a window; omitted fields are left unchanged"""

    date: Optional[dt.date] = None
    slots: Optional[list[SlotIn]] = None
    recurrence: Optional[RecurrencePolicy] = None


class SlotResponse(BaseModel):
    id: int
    start: dt.datetime
    end: dt.datetime
    occupied: bool

    class Config:
        from_attributes = True


class WindowResponse(BaseModel):
    id: int
    provider_id: int
    date: dt.date
    recurrence: str
    template_id: Optional[int] = None
    slots: list[SlotResponse]

    class Config:
        from_attributes = True


class WindowCreateResponse(BaseModel):
    window: WindowResponse
    generated: list[WindowResponse]
    skipped_dates: list[dt.date]


class WindowUpdateResponse(BaseModel):
    window: WindowResponse
    dropped_occupied_slots: list[SlotResponse]


class OpenSlotResponse(BaseModel):
    """An unoccupied slot offered for booking"""

    id: int
    window_id: int
    date: dt.date
    start: dt.datetime
    end: dt.datetime


class AvailabilityListResponse(BaseModel):
    provider_id: int
    category: str
    slots: list[OpenSlotResponse]
