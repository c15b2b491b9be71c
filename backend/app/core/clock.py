# backend/app/core/clock.py
"""
Injectable time source.

Reminder send times, past-candidate filtering and the sweep all ask a Clock
for "now" instead of calling datetime directly, so tests can pin the time.
All values are naive UTC, matching how timestamps are stored.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

import pytz

from .config import settings


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant as a naive UTC datetime."""

    def school_now(self) -> datetime:
        """Current wall-clock time in the school timezone (naive)."""
        tz = pytz.timezone(settings.school_timezone)
        return pytz.utc.localize(self.now()).astimezone(tz).replace(tzinfo=None)

    def school_today(self) -> date:
        return self.school_now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(timezone.utc).replace(tzinfo=None)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, **kwargs: float) -> datetime:
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant


system_clock = SystemClock()
