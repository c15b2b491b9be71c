"""Unit tests for time parsing and timezone conversion helpers."""

from datetime import date, datetime, time

import pytest

from app.utils.time_utils import (
    add_minutes,
    local_to_utc_naive,
    minutes_to_time,
    parse_date_str,
    parse_time_str,
    time_to_minutes,
)


class TestParsing:
    def test_strict_hhmm(self):
        assert parse_time_str("09:30") == time(9, 30)

    @pytest.mark.parametrize("value", ["9:30", "09:30:00", "24:00", "12:60", "noon", ""])
    def test_rejects_malformed_times(self, value):
        with pytest.raises(ValueError):
            parse_time_str(value)

    def test_strict_date(self):
        assert parse_date_str("2024-06-10") == date(2024, 6, 10)

    @pytest.mark.parametrize("value", ["2024-6-10", "2024-02-30", "10/06/2024", "2024-06-10T09:00"])
    def test_rejects_malformed_dates(self, value):
        with pytest.raises(ValueError):
            parse_date_str(value)


class TestMinutes:
    def test_round_trip_boundaries(self):
        assert time_to_minutes(time(23, 59)) == 1439
        assert minutes_to_time(0) == time(0, 0)

    def test_add_minutes_cannot_cross_midnight(self):
        assert add_minutes(time(22, 0), 90) == time(23, 30)
        with pytest.raises(ValueError):
            add_minutes(time(23, 30), 60)


class TestTimezone:
    def test_summer_time_is_one_hour_ahead(self):
        assert local_to_utc_naive(datetime(2024, 6, 10, 14, 0), "Europe/London") == datetime(
            2024, 6, 10, 13, 0
        )

    def test_winter_time_matches_utc(self):
        assert local_to_utc_naive(datetime(2024, 1, 10, 14, 0), "Europe/London") == datetime(
            2024, 1, 10, 14, 0
        )

    def test_non_existent_local_time_does_not_raise(self):
        # 01:30 on 2024-03-31 is skipped in London
        result = local_to_utc_naive(datetime(2024, 3, 31, 1, 30), "Europe/London")
        assert isinstance(result, datetime)
