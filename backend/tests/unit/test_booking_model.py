"""Unit tests for the booking lifecycle rules on the model."""

from datetime import date, datetime, time

import pytest

from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus


def _booking(status=BookingStatus.SCHEDULED.value):
    return Booking(
        student_id="S",
        instructor_id="I",
        course_id="C",
        booking_date=date(2024, 6, 10),
        start_time=time(10, 0),
        end_time=time(11, 0),
        duration_minutes=60,
        status=status,
    )


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("scheduled", "confirmed"),
            ("scheduled", "cancelled"),
            ("confirmed", "in_progress"),
            ("confirmed", "completed"),
            ("confirmed", "rescheduled"),
            ("in_progress", "completed"),
        ],
    )
    def test_allowed(self, current, target):
        assert _booking(current).can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("cancelled", "confirmed"),
            ("completed", "cancelled"),
            ("rescheduled", "confirmed"),
            ("in_progress", "scheduled"),
            ("scheduled", "completed"),
        ],
    )
    def test_rejected(self, current, target):
        assert not _booking(current).can_transition_to(target)

    def test_terminal_statuses_are_inactive(self):
        assert ACTIVE_STATUSES == {"scheduled", "confirmed", "in_progress"}
        assert not _booking("cancelled").is_active


class TestBookingHelpers:
    def test_default_status_is_scheduled(self):
        booking = Booking(
            student_id="S",
            instructor_id="I",
            course_id="C",
            booking_date=date(2024, 6, 10),
            start_time=time(10, 0),
            end_time=time(11, 0),
            duration_minutes=60,
        )
        assert booking.status == "scheduled"

    def test_mark_cancelled_records_reason(self):
        booking = _booking("confirmed")
        at = datetime(2024, 6, 3, 7, 0)
        booking.mark_cancelled(at, "Car in the garage")
        assert booking.status == "cancelled"
        assert booking.cancelled_at == at
        assert booking.cancellation_reason == "Car in the garage"

    def test_to_dict_uses_hhmm(self):
        data = _booking().to_dict()
        assert data["start_time"] == "10:00"
        assert data["booking_date"] == "2024-06-10"
