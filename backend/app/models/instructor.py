# backend/app/models/instructor.py
"""
Instructor directory projection.

Instructors and their course qualifications are owned by the identity
service; this engine only reads them to resolve auto-scheduling candidates
and display names.
"""

import logging

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class Instructor(Base):
    __tablename__ = "instructors"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    courses = relationship(
        "InstructorCourse", back_populates="instructor", cascade="all, delete-orphan"
    )
    availability_slots = relationship("TimeSlot", back_populates="instructor")
    bookings = relationship("Booking", back_populates="instructor")

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Instructor {self.id}: {self.display_name}>"


class InstructorCourse(Base):
    """A course an instructor is qualified to teach."""

    __tablename__ = "instructor_courses"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    instructor_id = Column(
        String(26), ForeignKey("instructors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(String(26), nullable=False, index=True)

    instructor = relationship("Instructor", back_populates="courses")

    __table_args__ = (
        UniqueConstraint("instructor_id", "course_id", name="uq_instructor_course"),
    )
