# backend/app/schemas/__init__.py
"""
Pydantic schemas for the scheduling API.

Request models forbid unknown fields; responses render dates as YYYY-MM-DD
and times as HH:MM.
"""

from .auto_schedule import AutoScheduleRequest, AutoScheduleResponse, ScheduleSuggestion
from .availability import (
    AvailabilityResponse,
    AvailabilityUpdate,
    AvailabilityUpdateResponse,
    AvailabilityWindow,
    DayAvailability,
    SlotCreateResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from .booking import (
    BookingCancel,
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ReminderResponse,
    ScheduleResponse,
    SweepResponse,
)

__all__ = [
    "AutoScheduleRequest",
    "AutoScheduleResponse",
    "AvailabilityResponse",
    "AvailabilityUpdate",
    "AvailabilityUpdateResponse",
    "AvailabilityWindow",
    "BookingCancel",
    "BookingCreate",
    "BookingReschedule",
    "BookingResponse",
    "BookingStatusUpdate",
    "ConflictCheckRequest",
    "ConflictCheckResponse",
    "DayAvailability",
    "ReminderResponse",
    "ScheduleResponse",
    "ScheduleSuggestion",
    "SlotCreateResponse",
    "SweepResponse",
    "TimeSlotCreate",
    "TimeSlotResponse",
]
