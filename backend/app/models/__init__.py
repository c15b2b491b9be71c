"""
Database models for the driving-school scheduling engine.

- Instructor directory projection (instructors, qualified courses)
- Availability slots and unavailability overrides
- Bookings and their status lifecycle
- Reminder entries
- Instructor-day schedule locks
"""

from .availability import RecurrencePattern, TimeSlot
from .booking import ACTIVE_STATUSES, ALLOWED_TRANSITIONS, Booking, BookingStatus
from .instructor import Instructor, InstructorCourse
from .reminder import ReminderEntry, ReminderStatus
from .schedule_lock import ScheduleLock

__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "Instructor",
    "InstructorCourse",
    "RecurrencePattern",
    "ReminderEntry",
    "ReminderStatus",
    "ScheduleLock",
    "TimeSlot",
]
