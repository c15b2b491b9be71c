# backend/app/services/conflict_checker.py
"""
Conflict Checker Service.

Booking-conflict detection over active bookings (scheduled, confirmed,
in_progress). Two intervals overlap when ``a.start < b.end and b.start <
a.end``, so back-to-back lessons never conflict. Nothing here writes.
"""

from datetime import date, time
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..models.booking import Booking
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..utils.time_utils import time_to_minutes
from .base import BaseService

logger = logging.getLogger(__name__)


def find_conflicts_in(bookings: Iterable[Booking], start_time: time, end_time: time) -> List[Booking]:
    """
    Bookings from an already-loaded list that overlap [start_time, end_time).

    Order is preserved, so callers that pass bookings sorted by start time
    then id get conflicts in that order.
    """
    return [b for b in bookings if b.start_time < end_time and start_time < b.end_time]


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts and time validation.

    Shared by manual booking creation, rescheduling and auto-scheduling so
    every path applies the same overlap rule.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("check_conflicts")
    def check_conflicts(
        self,
        instructor_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings of the instructor that overlap the proposed interval.

        Args:
            instructor_id: The instructor to check
            check_date: The date to check
            start_time: Start time of the proposed lesson
            end_time: End time of the proposed lesson
            exclude_booking_id: Booking being rescheduled, ignored in the check

        Returns:
            Conflicting bookings ordered by start time then id (empty if none)
        """
        bookings = self.repository.get_active_bookings_for_date(
            instructor_id, check_date, exclude_booking_id
        )
        conflicts = find_conflicts_in(bookings, start_time, end_time)

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {instructor_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )

        return conflicts

    def validate_time_range(self, start_time: time, end_time: time) -> int:
        """
        Check ordering and lesson length limits.

        Returns:
            Duration in minutes

        Raises:
            ValidationException: if end is not after start or the duration is
                outside the configured lesson bounds
        """
        if end_time <= start_time:
            raise ValidationException(
                "End time must be after start time",
                code="INVALID_TIME_RANGE",
                details={"start_time": start_time.strftime("%H:%M"), "end_time": end_time.strftime("%H:%M")},
            )
        duration = time_to_minutes(end_time) - time_to_minutes(start_time)
        if duration < settings.min_lesson_minutes:
            raise ValidationException(
                f"Lessons must be at least {settings.min_lesson_minutes} minutes",
                code="DURATION_TOO_SHORT",
                details={"duration_minutes": duration},
            )
        if duration > settings.max_lesson_minutes:
            raise ValidationException(
                f"Lessons cannot exceed {settings.max_lesson_minutes} minutes",
                code="DURATION_TOO_LONG",
                details={"duration_minutes": duration},
            )
        return duration
