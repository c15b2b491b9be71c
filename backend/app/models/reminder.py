# backend/app/models/reminder.py
"""
Reminder entries scheduled ahead of a lesson.

One row per configured offset per booking. Entries start ``pending`` and end
either ``sent`` (by the sweep) or ``cancelled`` (by a booking transition).
The sweep claims an entry as ``sent`` before delivering it and puts it back
to ``pending`` only when that delivery fails.
"""

from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"


class ReminderEntry(Base):
    __tablename__ = "reminder_entries"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id = Column(String(26), nullable=False)
    offset_minutes = Column(Integer, nullable=False)
    # Naive UTC
    scheduled_send_time = Column(DateTime, nullable=False)
    channel_set = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=ReminderStatus.PENDING.value)
    template_data = Column(JSON, nullable=False, default=dict)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", back_populates="reminders")

    __table_args__ = (
        UniqueConstraint("booking_id", "offset_minutes", name="uq_reminder_booking_offset"),
        CheckConstraint(
            "status IN ('pending', 'sent', 'cancelled')", name="ck_reminder_entries_status"
        ),
        CheckConstraint("offset_minutes > 0", name="check_offset_positive"),
        Index("ix_reminder_entries_due", "status", "scheduled_send_time"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == ReminderStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<ReminderEntry {self.id}: booking={self.booking_id} "
            f"offset={self.offset_minutes}m at={self.scheduled_send_time} status={self.status}>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "recipient_id": self.recipient_id,
            "offset_minutes": self.offset_minutes,
            "scheduled_send_time": self.scheduled_send_time.isoformat(),
            "channel_set": list(self.channel_set or []),
            "status": self.status,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
