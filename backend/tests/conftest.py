# backend/tests/conftest.py
"""
Pytest configuration.

Tests run against an in-memory SQLite database through the real models and
repositories. The environment is pinned BEFORE any app import so settings and
the engine pick it up.
"""

import os

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["SCHOOL_TIMEZONE"] = "Europe/London"
os.environ["CI"] = "1"

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_clock, get_db, get_notification_dispatcher
from app.core.clock import FixedClock
from app.core.config import settings
from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.availability import TimeSlot
from app.models.booking import Booking, BookingStatus
from app.models.instructor import Instructor, InstructorCourse
from app.services.notification_dispatcher import NotificationDispatcher

settings.is_testing = True

COURSE_ID = "01J0COURSE0000000000000001"
STUDENT_ID = "01J0STUDENT000000000000001"

# Monday 2024-06-03 08:00 London (BST) == 07:00 UTC
DEFAULT_NOW = datetime(2024, 6, 3, 7, 0)


class RecordingDispatcher(NotificationDispatcher):
    """Captures deliveries; ``fail_with`` makes every send fail."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None
        self.return_value = True

    def send(
        self,
        user_id: str,
        channel_set: List[str],
        payload: Dict[str, Any],
        *,
        idempotency_key: str,
    ) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        if self.return_value:
            self.sent.append(
                {
                    "user_id": user_id,
                    "channel_set": list(channel_set),
                    "payload": dict(payload),
                    "idempotency_key": idempotency_key,
                }
            )
        return self.return_value


@pytest.fixture
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FixedClock(DEFAULT_NOW)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def instructor_factory(db):
    def _create(
        first_name: str = "Alex",
        last_name: str = "Driver",
        courses: tuple = (COURSE_ID,),
        is_active: bool = True,
    ) -> Instructor:
        instructor = Instructor(first_name=first_name, last_name=last_name, is_active=is_active)
        db.add(instructor)
        db.flush()
        for course_id in courses:
            db.add(InstructorCourse(instructor_id=instructor.id, course_id=course_id))
        db.commit()
        return instructor

    return _create


@pytest.fixture
def instructor(instructor_factory):
    return instructor_factory()


@pytest.fixture
def slot_factory(db):
    def _create(
        instructor_id: str,
        slot_date: date,
        start: time,
        end: time,
        is_available: bool = True,
        recurrence_pattern: Optional[str] = None,
        recurrence_end_date: Optional[date] = None,
    ) -> TimeSlot:
        slot = TimeSlot(
            instructor_id=instructor_id,
            date=slot_date,
            start_time=start,
            end_time=end,
            is_available=is_available,
            is_recurring=recurrence_pattern is not None,
            recurrence_pattern=recurrence_pattern,
            recurrence_end_date=recurrence_end_date,
        )
        db.add(slot)
        db.commit()
        return slot

    return _create


@pytest.fixture
def booking_factory(db):
    def _create(
        instructor_id: str,
        booking_date: date,
        start: time,
        end: time,
        status: str = BookingStatus.CONFIRMED.value,
        student_id: str = STUDENT_ID,
    ) -> Booking:
        duration = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
        booking = Booking(
            student_id=student_id,
            instructor_id=instructor_id,
            course_id=COURSE_ID,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            duration_minutes=duration,
            status=status,
        )
        db.add(booking)
        db.commit()
        return booking

    return _create


@pytest.fixture
def client(db, clock, dispatcher):
    """TestClient sharing the test session, clock and dispatcher."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
