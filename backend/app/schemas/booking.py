# backend/app/schemas/booking.py
"""
Booking schemas.

Bookings are self-contained: date, start and end time live on the booking
itself. ``end_time`` may be given directly or derived from
``duration_minutes``.
"""

import datetime as dt
from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from ..models.booking import BookingStatus
from ..utils.time_utils import add_minutes, time_to_minutes
from ._strict_base import StrictModel, StrictRequestModel, ensure_date_only, ensure_hhmm
from .availability import TimeSlotResponse


class BookingCreate(StrictRequestModel):
    student_id: str = Field(..., min_length=1)
    instructor_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    booking_date: date
    start_time: time
    end_time: Optional[time] = Field(None, description="Derived from duration_minutes when omitted")
    duration_minutes: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=1000)
    status: Literal["scheduled", "confirmed"] = BookingStatus.SCHEDULED.value

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "booking_date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return ensure_hhmm(v, "time")

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def validate_time_order(self) -> "BookingCreate":
        """Derive whichever of end_time/duration_minutes is missing and check they agree."""
        if self.end_time is None:
            if self.duration_minutes is None:
                raise ValueError("Either end_time or duration_minutes is required")
            try:
                self.end_time = add_minutes(self.start_time, self.duration_minutes)
            except ValueError:
                raise ValueError("Lesson must end on the same day it starts")
        derived = time_to_minutes(self.end_time) - time_to_minutes(self.start_time)
        if derived <= 0:
            raise ValueError("End time must be after start time")
        if self.duration_minutes is None:
            self.duration_minutes = derived
        elif self.duration_minutes != derived:
            raise ValueError("duration_minutes does not match start_time/end_time")
        return self


class BookingStatusUpdate(StrictRequestModel):
    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=500)


class BookingReschedule(StrictRequestModel):
    booking_date: date
    start_time: time
    duration_minutes: Optional[int] = Field(None, gt=0)

    @field_validator("booking_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "booking_date")

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return ensure_hhmm(v, "start_time")


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(StrictModel):
    id: str
    student_id: str
    instructor_id: str
    course_id: str
    booking_date: str
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    notes: Optional[str] = None
    created_at: Optional[str] = None
    confirmed_at: Optional[str] = None
    cancelled_at: Optional[str] = None
    cancellation_reason: Optional[str] = None


class ScheduleResponse(StrictModel):
    instructor_id: str
    start_date: date
    end_date: date
    bookings: List[BookingResponse]
    slots: List[TimeSlotResponse]


class ConflictCheckRequest(StrictRequestModel):
    instructor_id: str = Field(..., min_length=1)
    date: dt.date
    start_time: time
    end_time: time
    exclude_booking_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return ensure_hhmm(v, "time")


class ConflictCheckResponse(StrictModel):
    has_conflicts: bool
    conflicts: List[BookingResponse]


class ReminderResponse(StrictModel):
    id: str
    booking_id: str
    recipient_id: str
    offset_minutes: int
    scheduled_send_time: str
    channel_set: List[str]
    status: str
    attempts: int
    last_error: Optional[str] = None
    sent_at: Optional[str] = None
    cancelled_at: Optional[str] = None


class SweepResponse(StrictModel):
    processed: int
    sent: int
    failed: int
    skipped: int
    timestamp: datetime
