from __future__ import annotations

from datetime import date, datetime, time
import re

import pytz

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def time_to_minutes(t: time) -> int:
    """Minutes since midnight."""
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < 24 * 60:
        raise ValueError(f"minutes out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def format_time(t: time) -> str:
    return t.strftime("%H:%M")


def parse_date_str(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` date.

    Raises:
        ValueError: on any other format or an impossible calendar date
    """
    if not DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD): {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_time_str(value: str) -> time:
    """
    Parse a strict 24-hour ``HH:MM`` time.

    Raises:
        ValueError: on any other format or an out-of-range hour/minute
    """
    if not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format (expected HH:MM): {value!r}")
    return datetime.strptime(value, "%H:%M").time()


def add_minutes(t: time, minutes: int) -> time:
    """Shift a wall-clock time; raises ValueError if the result leaves the day."""
    return minutes_to_time(time_to_minutes(t) + minutes)


def local_to_utc_naive(local_dt: datetime, tz_name: str) -> datetime:
    """
    Interpret a naive wall-clock datetime in ``tz_name`` and return naive UTC.

    Ambiguous and non-existent local times (DST transitions) resolve with
    ``is_dst=False`` rather than raising.
    """
    tz = pytz.timezone(tz_name)
    aware = tz.localize(local_dt, is_dst=False)
    return aware.astimezone(pytz.utc).replace(tzinfo=None)
