# backend/app/models/booking.py
"""
Booking model for the driving-school scheduling engine.

A booking is a self-contained lesson record: instructor, date and times are
stored directly so the lesson survives later availability changes. Status
changes go through BookingService, which enforces ``ALLOWED_TRANSITIONS``.
"""

from datetime import date, datetime, time
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional, cast

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    SCHEDULED = "scheduled"  # Requested, not yet confirmed
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"  # Superseded by another booking


ACTIVE_STATUSES: FrozenSet[str] = frozenset(
    {
        BookingStatus.SCHEDULED.value,
        BookingStatus.CONFIRMED.value,
        BookingStatus.IN_PROGRESS.value,
    }
)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.SCHEDULED.value: frozenset(
        {
            BookingStatus.CONFIRMED.value,
            BookingStatus.CANCELLED.value,
            BookingStatus.RESCHEDULED.value,
        }
    ),
    BookingStatus.CONFIRMED.value: frozenset(
        {
            BookingStatus.IN_PROGRESS.value,
            BookingStatus.COMPLETED.value,
            BookingStatus.CANCELLED.value,
            BookingStatus.RESCHEDULED.value,
        }
    ),
    BookingStatus.IN_PROGRESS.value: frozenset(
        {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.COMPLETED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
    BookingStatus.RESCHEDULED.value: frozenset(),
}


class Booking(Base):
    """
    Lesson booking between a student and an instructor.

    Invariant: two active bookings of one instructor never overlap on the
    half-open interval [start_time, end_time) of the same date.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(26), nullable=False, index=True)
    instructor_id = Column(String(26), ForeignKey("instructors.id"), nullable=False)
    course_id = Column(String(26), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.SCHEDULED.value, index=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    instructor = relationship("Instructor", back_populates="bookings")
    reminders = relationship(
        "ReminderEntry",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="ReminderEntry.offset_minutes.desc()",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', 'cancelled', 'rescheduled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("start_time < end_time", name="check_time_order"),
        Index("ix_bookings_instructor_date", "instructor_id", "booking_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.SCHEDULED.value
        logger.info(
            f"Creating booking for student {self.student_id} with instructor {self.instructor_id}"
        )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, "
            f"instructor={self.instructor_id}, date={self.booking_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(cast(str, self.status), frozenset())

    def lesson_start(self) -> datetime:
        """Naive local start of the lesson (school timezone)."""
        return datetime.combine(cast(date, self.booking_date), cast(time, self.start_time))

    def mark_confirmed(self, at: datetime) -> None:
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = at

    def mark_cancelled(self, at: datetime, reason: Optional[str] = None) -> None:
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = at
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "instructor_id": self.instructor_id,
            "course_id": self.course_id,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
        }
