# backend/app/schemas/availability.py
"""
Availability schemas.

Slot creation accepts raw strings: format checks happen in
AvailabilityService so a malformed slot rejects the whole batch with one
validation error. Updates and queries are typed and validated here.
"""

import datetime as dt
from datetime import time
from typing import List, Literal, Optional

from pydantic import Field, field_serializer, field_validator

from ._strict_base import StrictModel, StrictRequestModel, ensure_date_only, ensure_hhmm, hhmm


class TimeSlotCreate(StrictRequestModel):
    instructor_id: str = Field(..., min_length=1)
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM (24-hour)")
    end_time: str = Field(..., description="HH:MM (24-hour)")
    is_available: bool = True
    is_recurring: bool = False
    recurrence_pattern: Optional[Literal["daily", "weekly", "monthly"]] = None
    recurrence_end_date: Optional[str] = None


class TimeSlotResponse(StrictModel):
    id: str
    instructor_id: str
    date: str
    start_time: str
    end_time: str
    is_available: bool
    is_recurring: bool
    recurrence_pattern: Optional[str] = None
    recurrence_end_date: Optional[str] = None


class SlotCreateResponse(StrictModel):
    created: int
    slots: List[TimeSlotResponse]


class AvailabilityUpdate(StrictRequestModel):
    """Mark one range of one date available or unavailable."""

    instructor_id: str = Field(..., min_length=1)
    date: dt.date
    start_time: time
    end_time: time
    is_available: bool

    @field_validator("date", mode="before")
    @classmethod
    def _date_only(cls, v: object) -> object:
        return ensure_date_only(v, "date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _hhmm(cls, v: object) -> object:
        return ensure_hhmm(v, "time")


class AvailabilityUpdateResponse(StrictModel):
    instructor_id: str
    date: str
    slots: List[TimeSlotResponse]


class AvailabilityWindow(StrictModel):
    start_time: time
    end_time: time

    @field_serializer("start_time", "end_time")
    def _serialize_time(self, value: time) -> str:
        return hhmm(value)


class DayAvailability(StrictModel):
    date: dt.date
    slots: List[AvailabilityWindow]


class AvailabilityResponse(StrictModel):
    instructor_id: str
    start_date: dt.date
    end_date: dt.date
    availability: List[DayAvailability]
