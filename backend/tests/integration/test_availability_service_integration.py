"""Integration tests for AvailabilityService."""

from datetime import date, time

import pytest

from app.core.exceptions import AvailabilityOverlapException, NotFoundException, ValidationException
from app.models.availability import TimeSlot
from app.models.schedule_lock import ScheduleLock
from app.services.availability_service import AvailabilityService

MONDAY = date(2024, 6, 10)


@pytest.fixture
def service(db):
    return AvailabilityService(db)


def _slot(instructor_id, day="2024-06-10", start="09:00", end="17:00", **extra):
    payload = {
        "instructor_id": instructor_id,
        "date": day,
        "start_time": start,
        "end_time": end,
    }
    payload.update(extra)
    return payload


def _stored(db, instructor_id):
    return (
        db.query(TimeSlot)
        .filter(TimeSlot.instructor_id == instructor_id)
        .order_by(TimeSlot.date, TimeSlot.start_time)
        .all()
    )


class TestCreateSlots:
    def test_creates_batch(self, service, instructor, db):
        created = service.create_slots(
            [_slot(instructor.id), _slot(instructor.id, day="2024-06-11", start="10:00", end="12:00")]
        )

        assert len(created) == 2
        assert len(_stored(db, instructor.id)) == 2

    def test_empty_batch_rejected(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.create_slots([])
        assert exc_info.value.code == "EMPTY_BATCH"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"date": "2024-13-01"},
            {"start_time": "9:00"},
            {"end_time": "25:00"},
            {"date": "10/06/2024"},
        ],
    )
    def test_malformed_values_reject_whole_batch(self, service, instructor, db, overrides):
        bad = _slot(instructor.id, day="2024-06-11")
        bad.update(overrides)

        with pytest.raises(ValidationException) as exc_info:
            service.create_slots([_slot(instructor.id), bad])

        assert exc_info.value.code == "INVALID_FORMAT"
        assert exc_info.value.details["index"] == 1
        assert _stored(db, instructor.id) == []

    def test_end_before_start_rejected(self, service, instructor):
        with pytest.raises(ValidationException) as exc_info:
            service.create_slots([_slot(instructor.id, start="12:00", end="11:00")])
        assert exc_info.value.code == "INVALID_TIME_RANGE"

    def test_recurring_without_pattern_rejected(self, service, instructor):
        with pytest.raises(ValidationException) as exc_info:
            service.create_slots([_slot(instructor.id, is_recurring=True)])
        assert exc_info.value.code == "INVALID_RECURRENCE"

    def test_overlap_with_stored_slot(self, service, instructor, db):
        service.create_slots([_slot(instructor.id)])

        with pytest.raises(AvailabilityOverlapException) as exc_info:
            service.create_slots([_slot(instructor.id, start="16:00", end="18:00")])

        assert exc_info.value.details == {
            "date": "2024-06-10",
            "new_slot": "16:00-18:00",
            "conflicting_slot": "09:00-17:00",
        }
        assert len(_stored(db, instructor.id)) == 1

    def test_overlap_within_batch_is_all_or_nothing(self, service, instructor, db):
        with pytest.raises(AvailabilityOverlapException):
            service.create_slots(
                [
                    _slot(instructor.id, start="09:00", end="12:00"),
                    _slot(instructor.id, start="11:00", end="13:00"),
                ]
            )
        assert _stored(db, instructor.id) == []

    def test_touching_slots_are_allowed(self, service, instructor):
        created = service.create_slots(
            [
                _slot(instructor.id, start="09:00", end="12:00"),
                _slot(instructor.id, start="12:00", end="15:00"),
            ]
        )
        assert len(created) == 2

    def test_unavailable_slot_may_overlap_available(self, service, instructor):
        service.create_slots([_slot(instructor.id)])
        created = service.create_slots(
            [_slot(instructor.id, start="12:00", end="13:00", is_available=False)]
        )
        assert created[0].is_available is False

    def test_recurring_slot_overlapping_future_instance(self, service, instructor):
        service.create_slots([_slot(instructor.id, day="2024-06-17", start="10:00", end="11:00")])

        with pytest.raises(AvailabilityOverlapException) as exc_info:
            service.create_slots(
                [_slot(instructor.id, is_recurring=True, recurrence_pattern="weekly")]
            )
        assert exc_info.value.details["date"] == "2024-06-17"

    def test_recurring_slot_locks_every_occurrence_date(self, service, instructor, db):
        service.create_slots(
            [
                _slot(
                    instructor.id,
                    is_recurring=True,
                    recurrence_pattern="weekly",
                    recurrence_end_date="2024-06-24",
                )
            ]
        )

        locked = [
            lock.lock_date
            for lock in db.query(ScheduleLock)
            .filter_by(instructor_id=instructor.id)
            .order_by(ScheduleLock.lock_date)
        ]
        assert locked == [date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24)]

    def test_unknown_instructor_checked_after_parsing(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.create_slots([_slot("01J0NOBODY0000000000000000", day="2024-13-01")])
        assert exc_info.value.code == "INVALID_FORMAT"

        with pytest.raises(NotFoundException):
            service.create_slots([_slot("01J0NOBODY0000000000000000")])


class TestGetAvailability:
    def test_unavailability_splits_window(self, service, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(17, 0))
        slot_factory(instructor.id, MONDAY, time(12, 0), time(13, 0), is_available=False)

        result = service.get_availability(instructor.id, MONDAY, MONDAY)

        assert result == [
            {"date": MONDAY, "windows": [(time(9, 0), time(12, 0)), (time(13, 0), time(17, 0))]}
        ]

    def test_recurring_instances_materialized(self, service, instructor, slot_factory):
        slot_factory(
            instructor.id,
            MONDAY,
            time(9, 0),
            time(12, 0),
            recurrence_pattern="weekly",
            recurrence_end_date=date(2024, 6, 24),
        )

        result = service.get_availability(instructor.id, date(2024, 6, 1), date(2024, 6, 30))

        assert [day["date"] for day in result] == [
            date(2024, 6, 10),
            date(2024, 6, 17),
            date(2024, 6, 24),
        ]

    def test_fully_blocked_day_omitted(self, service, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(12, 0))
        slot_factory(instructor.id, MONDAY, time(8, 0), time(13, 0), is_available=False)

        assert service.get_availability(instructor.id, MONDAY, MONDAY) == []

    def test_invalid_range(self, service, instructor):
        with pytest.raises(ValidationException) as exc_info:
            service.get_availability(instructor.id, date(2024, 6, 10), date(2024, 6, 1))
        assert exc_info.value.code == "INVALID_DATE_RANGE"

    def test_range_too_wide(self, service, instructor):
        with pytest.raises(ValidationException) as exc_info:
            service.get_availability(instructor.id, date(2024, 1, 1), date(2025, 6, 1))
        assert exc_info.value.code == "DATE_RANGE_TOO_WIDE"

    def test_get_slots_includes_templates(self, service, instructor, slot_factory):
        template = slot_factory(
            instructor.id, date(2024, 6, 3), time(9, 0), time(10, 0), recurrence_pattern="weekly"
        )
        explicit = slot_factory(instructor.id, MONDAY, time(14, 0), time(15, 0))
        slot_factory(instructor.id, date(2024, 6, 20), time(9, 0), time(10, 0))

        slots = service.get_slots(instructor.id, MONDAY, date(2024, 6, 12))

        assert [s.id for s in slots] == [template.id, explicit.id]


class TestUpdateAvailability:
    def test_marking_unavailable_splits_available_slot(self, service, instructor, db, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(17, 0))

        service.update_availability(instructor.id, MONDAY, time(12, 0), time(13, 0), False)

        stored = [
            (s.start_time, s.end_time, s.is_available) for s in _stored(db, instructor.id)
        ]
        assert stored == [
            (time(9, 0), time(12, 0), True),
            (time(12, 0), time(13, 0), False),
            (time(13, 0), time(17, 0), True),
        ]
        windows = service.get_available_windows(instructor.id, MONDAY, MONDAY)
        assert windows == {MONDAY: [(540, 720), (780, 1020)]}

    def test_marking_available_merges_touching_slots(self, service, instructor, db, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(11, 0))
        slot_factory(instructor.id, MONDAY, time(12, 0), time(14, 0))

        service.update_availability(instructor.id, MONDAY, time(11, 0), time(12, 0), True)

        stored = [(s.start_time, s.end_time) for s in _stored(db, instructor.id)]
        assert stored == [(time(9, 0), time(14, 0))]

    def test_exact_match_flips_flag(self, service, instructor, db, slot_factory):
        slot = slot_factory(instructor.id, MONDAY, time(9, 0), time(10, 0))

        result = service.update_availability(instructor.id, MONDAY, time(9, 0), time(10, 0), False)

        assert [s.id for s in result] == [slot.id]
        assert result[0].is_available is False

    def test_invalid_range(self, service, instructor):
        with pytest.raises(ValidationException):
            service.update_availability(instructor.id, MONDAY, time(10, 0), time(10, 0), True)


class TestUpdateUnderRecurringTemplates:
    @pytest.fixture
    def weekly(self, instructor, slot_factory):
        return slot_factory(
            instructor.id, date(2024, 6, 3), time(9, 0), time(17, 0), recurrence_pattern="weekly"
        )

    def test_range_already_available_writes_no_row(self, service, instructor, db, weekly):
        result = service.update_availability(instructor.id, MONDAY, time(10, 0), time(12, 0), True)

        assert result == []
        assert [s.id for s in _stored(db, instructor.id)] == [weekly.id]
        day = service.get_day_intervals(instructor.id, MONDAY, MONDAY)[MONDAY]
        assert day.available == [(540, 1020)]

    def test_available_again_removes_override(self, service, instructor, db, weekly, slot_factory):
        slot_factory(instructor.id, MONDAY, time(12, 0), time(13, 0), is_available=False)

        service.update_availability(instructor.id, MONDAY, time(12, 0), time(13, 0), True)

        assert [s.id for s in _stored(db, instructor.id)] == [weekly.id]
        windows = service.get_available_windows(instructor.id, MONDAY, MONDAY)
        assert windows == {MONDAY: [(540, 1020)]}

    def test_partial_overlap_rejected(self, service, instructor, db, weekly):
        with pytest.raises(AvailabilityOverlapException) as exc_info:
            service.update_availability(instructor.id, MONDAY, time(16, 0), time(18, 0), True)

        assert exc_info.value.details["conflicting_slot"] == "09:00-17:00"
        assert [s.id for s in _stored(db, instructor.id)] == [weekly.id]

    def test_marking_unavailable_is_still_an_override(self, service, instructor, db, weekly):
        result = service.update_availability(instructor.id, MONDAY, time(12, 0), time(13, 0), False)

        assert [(s.start_time, s.is_available) for s in result] == [(time(12, 0), False)]
        windows = service.get_available_windows(instructor.id, MONDAY, MONDAY)
        assert windows == {MONDAY: [(540, 720), (780, 1020)]}

    def test_recurring_unavailability_cannot_be_overridden(
        self, service, instructor, db, slot_factory
    ):
        slot_factory(
            instructor.id,
            date(2024, 6, 3),
            time(12, 0),
            time(13, 0),
            is_available=False,
            recurrence_pattern="weekly",
        )

        with pytest.raises(ValidationException) as exc_info:
            service.update_availability(instructor.id, MONDAY, time(11, 0), time(14, 0), True)

        assert exc_info.value.code == "RECURRING_UNAVAILABILITY"
        assert exc_info.value.details == {"date": "2024-06-10", "blocked_slot": "12:00-13:00"}
        assert len(_stored(db, instructor.id)) == 1

    def test_other_weekdays_are_unaffected(self, service, instructor, weekly):
        tuesday = date(2024, 6, 11)

        result = service.update_availability(instructor.id, tuesday, time(10, 0), time(12, 0), True)

        assert [(s.start_time, s.end_time) for s in result] == [(time(10, 0), time(12, 0))]


def test_require_instructor_unknown(service):
    with pytest.raises(NotFoundException):
        service.require_instructor("01J0NOBODY0000000000000000")
