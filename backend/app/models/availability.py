# backend/app/models/availability.py
"""
Availability models for the driving-school scheduling engine.

Classes:
    RecurrencePattern: How a recurring slot repeats
    TimeSlot: One instructor availability window, or an unavailability
        override when ``is_available`` is false. Recurring slots are
        templates whose first occurrence is ``date``.
"""

from datetime import date, time
from enum import Enum
import logging
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class RecurrencePattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TimeSlot(Base):
    """Instructor availability window on a date (or a recurring template)."""

    __tablename__ = "instructor_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(
        String(26), ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_pattern = Column(String(10), nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    instructor = relationship("Instructor", back_populates="availability_slots")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_availability_time_order"),
        CheckConstraint(
            "recurrence_pattern IS NULL OR recurrence_pattern IN ('daily', 'weekly', 'monthly')",
            name="ck_availability_recurrence_pattern",
        ),
        CheckConstraint(
            "is_recurring = false OR recurrence_pattern IS NOT NULL",
            name="ck_availability_recurring_has_pattern",
        ),
        Index("idx_availability_instructor_date", "instructor_id", "date"),
    )

    def __repr__(self) -> str:
        kind = "available" if self.is_available else "unavailable"
        recurring = f" {self.recurrence_pattern}" if self.is_recurring else ""
        return (
            f"<TimeSlot {self.instructor_id} {self.date} "
            f"{self.start_time}-{self.end_time} {kind}{recurring}>"
        )

    def occurs_within(self, range_start: date, range_end: date) -> bool:
        """Whether this slot can produce an instance inside [range_start, range_end]."""
        first = cast(date, self.date)
        if not self.is_recurring:
            return range_start <= first <= range_end
        last = cast(date, self.recurrence_end_date) if self.recurrence_end_date else None
        return first <= range_end and (last is None or last >= range_start)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "instructor_id": self.instructor_id,
            "date": self.date.isoformat() if self.date else None,
            "start_time": cast(time, self.start_time).strftime("%H:%M"),
            "end_time": cast(time, self.end_time).strftime("%H:%M"),
            "is_available": bool(self.is_available),
            "is_recurring": bool(self.is_recurring),
            "recurrence_pattern": self.recurrence_pattern,
            "recurrence_end_date": (
                self.recurrence_end_date.isoformat() if self.recurrence_end_date else None
            ),
        }
