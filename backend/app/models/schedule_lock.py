"""Per instructor-day lock rows serializing schedule writes."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, String
from sqlalchemy.sql import func

from ..database import Base


class ScheduleLock(Base):
    """
    Row locked FOR UPDATE while a booking or availability write for one
    instructor-day checks for overlaps and inserts.
    """

    __tablename__ = "schedule_locks"

    instructor_id = Column(
        String(26), ForeignKey("instructors.id", ondelete="CASCADE"), primary_key=True
    )
    lock_date = Column(Date, primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<ScheduleLock {self.instructor_id} {self.lock_date}>"
