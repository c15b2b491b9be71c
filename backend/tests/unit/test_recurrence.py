"""Unit tests for recurring availability expansion."""

from datetime import date
from types import SimpleNamespace

import pytest

from app.utils.recurrence import expand_recurrence


def _template(start, pattern, end=None):
    return SimpleNamespace(date=start, recurrence_pattern=pattern, recurrence_end_date=end)


class TestDaily:
    def test_every_day_in_range(self):
        template = _template(date(2024, 6, 1), "daily")
        assert expand_recurrence(template, date(2024, 6, 3), date(2024, 6, 5)) == [
            date(2024, 6, 3),
            date(2024, 6, 4),
            date(2024, 6, 5),
        ]

    def test_never_before_template_date(self):
        template = _template(date(2024, 6, 10), "daily")
        result = expand_recurrence(template, date(2024, 6, 1), date(2024, 6, 11))
        assert result == [date(2024, 6, 10), date(2024, 6, 11)]

    def test_stops_at_end_date(self):
        template = _template(date(2024, 6, 1), "daily", end=date(2024, 6, 2))
        result = expand_recurrence(template, date(2024, 6, 1), date(2024, 6, 30))
        assert result == [date(2024, 6, 1), date(2024, 6, 2)]


class TestDeterminism:
    @pytest.mark.parametrize("pattern", ["daily", "weekly", "monthly"])
    def test_same_range_gives_same_dates(self, pattern):
        template = _template(date(2024, 1, 31), pattern, end=date(2024, 12, 31))

        first = expand_recurrence(template, date(2024, 2, 1), date(2024, 9, 30))
        second = expand_recurrence(template, date(2024, 2, 1), date(2024, 9, 30))

        assert first == second
        assert first == sorted(set(first))


class TestWeekly:
    def test_same_weekday(self):
        # 2024-06-03 is a Monday
        template = _template(date(2024, 6, 3), "weekly")
        result = expand_recurrence(template, date(2024, 6, 5), date(2024, 6, 30))
        assert result == [date(2024, 6, 10), date(2024, 6, 17), date(2024, 6, 24)]
        assert all(d.weekday() == 0 for d in result)

    def test_range_before_template_is_empty(self):
        template = _template(date(2024, 6, 3), "weekly")
        assert expand_recurrence(template, date(2024, 5, 1), date(2024, 5, 31)) == []


class TestMonthly:
    def test_same_day_of_month(self):
        template = _template(date(2024, 1, 15), "monthly")
        result = expand_recurrence(template, date(2024, 3, 1), date(2024, 5, 31))
        assert result == [date(2024, 3, 15), date(2024, 4, 15), date(2024, 5, 15)]

    def test_short_months_clamp_to_last_day(self):
        template = _template(date(2024, 1, 31), "monthly")
        result = expand_recurrence(template, date(2024, 1, 1), date(2024, 4, 30))
        assert result == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]


def test_unknown_pattern_raises():
    template = _template(date(2024, 6, 3), "fortnightly")
    with pytest.raises(ValueError):
        expand_recurrence(template, date(2024, 6, 1), date(2024, 6, 30))
