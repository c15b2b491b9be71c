"""Integration tests for auto-scheduling suggestions."""

from datetime import date, datetime, time

import pytest

from app.core.exceptions import NotFoundException
from app.schemas.auto_schedule import AutoScheduleRequest
from app.services.auto_scheduler import AutoScheduler
from app.services.conflict_checker import ConflictChecker

COURSE_ID = "01J0COURSE0000000000000001"
MONDAY = date(2024, 6, 10)


@pytest.fixture
def scheduler(db, clock):
    return AutoScheduler(db, clock=clock)


def _request(**overrides):
    payload = {
        "course_id": COURSE_ID,
        "student_id": "01J0STUDENT000000000000001",
        "duration_minutes": 60,
    }
    payload.update(overrides)
    return AutoScheduleRequest(**payload)


class TestSuggest:
    def test_preferred_time_is_best_suggestion(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(17, 0))

        response = scheduler.suggest(_request(preferred_times=["09:00"]))

        best = response.best_suggestion
        assert best is not None
        assert (best.date, best.start_time, best.end_time) == (MONDAY, time(9, 0), time(10, 0))
        assert best.instructor_id == instructor.id
        assert best.instructor_name == "Alex Driver"
        assert "Matches preferred time" in best.reasons
        assert response.total_suggestions == len(response.suggestions)

    def test_booked_times_are_skipped(self, scheduler, instructor, slot_factory, booking_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(11, 0))
        booking_factory(instructor.id, MONDAY, time(9, 0), time(10, 0))

        response = scheduler.suggest(_request())

        starts = [s.start_time for s in response.suggestions]
        assert starts == [time(10, 0)]

    def test_every_suggestion_is_conflict_free(
        self, scheduler, instructor, slot_factory, booking_factory, db
    ):
        slot_factory(
            instructor.id, date(2024, 6, 3), time(9, 0), time(17, 0), recurrence_pattern="daily"
        )
        booking_factory(instructor.id, MONDAY, time(10, 15), time(11, 15))
        booking_factory(instructor.id, MONDAY, time(13, 0), time(14, 30))
        booking_factory(instructor.id, date(2024, 6, 11), time(9, 0), time(12, 45))

        response = scheduler.suggest(
            _request(duration_minutes=90, earliest_date=MONDAY, latest_date=date(2024, 6, 11))
        )

        checker = ConflictChecker(db)
        assert response.suggestions
        for suggestion in response.suggestions:
            assert (
                checker.check_conflicts(
                    suggestion.instructor_id,
                    suggestion.date,
                    suggestion.start_time,
                    suggestion.end_time,
                )
                == []
            )

    def test_unavailability_is_subtracted(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(11, 0))
        slot_factory(instructor.id, MONDAY, time(9, 30), time(10, 0), is_available=False)

        response = scheduler.suggest(_request())

        assert [s.start_time for s in response.suggestions] == [time(10, 0)]

    def test_ordering_score_then_date_then_time(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(14, 0), time(15, 0))
        slot_factory(instructor.id, date(2024, 6, 11), time(9, 0), time(10, 0))
        slot_factory(instructor.id, date(2024, 6, 12), time(9, 0), time(10, 0))

        response = scheduler.suggest(_request())

        assert [(s.date, s.start_time, s.score) for s in response.suggestions] == [
            (date(2024, 6, 11), time(9, 0), 110),
            (date(2024, 6, 12), time(9, 0), 110),
            (MONDAY, time(14, 0), 105),
        ]

    def test_exact_preference_match_outranks_partial(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(9, 0), time(10, 0))
        slot_factory(instructor.id, date(2024, 6, 11), time(18, 0), time(19, 0))

        response = scheduler.suggest(
            _request(preferred_dates=["2024-06-11"], preferred_times=["18:00"])
        )

        assert response.best_suggestion.date == date(2024, 6, 11)

    def test_avoid_weekends(self, scheduler, instructor, slot_factory):
        saturday = date(2024, 6, 8)
        slot_factory(instructor.id, saturday, time(9, 0), time(10, 0))

        response = scheduler.suggest(_request(avoid_weekends=True))

        assert response.suggestions == []
        assert response.best_suggestion is None
        assert response.total_suggestions == 0

    def test_past_candidates_dropped(self, scheduler, instructor, slot_factory, clock):
        # 10:00 UTC == 11:00 London
        clock.set(datetime(2024, 6, 10, 10, 0))
        slot_factory(instructor.id, MONDAY, time(9, 0), time(13, 0))

        response = scheduler.suggest(_request())

        assert min(s.start_time for s in response.suggestions) == time(11, 15)

    def test_window_respects_latest_date(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, date(2024, 6, 20), time(9, 0), time(10, 0))

        response = scheduler.suggest(_request(latest_date="2024-06-15"))

        assert response.suggestions == []

    def test_result_capped(self, scheduler, instructor, slot_factory):
        slot_factory(instructor.id, MONDAY, time(6, 0), time(22, 0))

        response = scheduler.suggest(_request(duration_minutes=30))

        assert len(response.suggestions) == 20

    def test_only_qualified_instructors(self, scheduler, instructor_factory, slot_factory):
        other_course = instructor_factory(first_name="Jo", courses=("01J0OTHERCOURSE00000000001",))
        slot_factory(other_course.id, MONDAY, time(9, 0), time(10, 0))

        assert scheduler.suggest(_request()).suggestions == []

    def test_unknown_instructor(self, scheduler):
        with pytest.raises(NotFoundException):
            scheduler.suggest(_request(instructor_id="01J0NOBODY0000000000000000"))


class TestResolveWindow:
    def test_defaults_to_thirty_days_from_today(self, scheduler):
        assert scheduler.resolve_window(_request()) == (date(2024, 6, 3), date(2024, 7, 3))

    def test_never_starts_in_the_past(self, scheduler):
        start, _ = scheduler.resolve_window(_request(earliest_date="2024-05-01"))
        assert start == date(2024, 6, 3)

    def test_capped_at_ninety_days(self, scheduler):
        _, end = scheduler.resolve_window(_request(latest_date="2025-06-01"))
        assert end == date(2024, 9, 1)
