"""Unit tests for the injectable clock."""

from datetime import date, datetime, timedelta, timezone

from app.core.clock import FixedClock, SystemClock


class TestFixedClock:
    def test_school_now_applies_timezone(self):
        clock = FixedClock(datetime(2024, 6, 10, 23, 30))
        # 23:30 UTC in June is 00:30 the next day in London
        assert clock.school_now() == datetime(2024, 6, 11, 0, 30)
        assert clock.school_today() == date(2024, 6, 11)

    def test_aware_instant_is_normalized_to_naive_utc(self):
        aware = datetime(2024, 6, 10, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert FixedClock(aware).now() == datetime(2024, 6, 10, 8, 0)

    def test_advance(self):
        clock = FixedClock(datetime(2024, 6, 10, 8, 0))
        assert clock.advance(minutes=15) == datetime(2024, 6, 10, 8, 15)
        assert clock.now() == datetime(2024, 6, 10, 8, 15)


def test_system_clock_is_naive():
    assert SystemClock().now().tzinfo is None
