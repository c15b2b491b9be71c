# backend/app/services/auto_scheduler.py
"""
Auto Scheduler Service.

Ranks candidate lesson times for a course from instructor availability and
existing bookings.

Scoring (base 100):
    +20  lesson date is one of the preferred dates
    +15  lesson start is one of the preferred times
    +10  morning start (09:00-12:59)
     +5  afternoon start (13:00-17:59)

The time-of-day bonus never exceeds 10, so a candidate matching both
preferences (at least +35) always outranks one matching only one (at most
+30). Ties are broken by earliest date and start time, then instructor id.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.exceptions import NotFoundException, ValidationException
from ..models.instructor import Instructor
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.instructor_repository import InstructorRepository
from ..schemas.auto_schedule import AutoScheduleRequest, AutoScheduleResponse, ScheduleSuggestion
from ..utils.intervals import slice_starts
from ..utils.time_utils import minutes_to_time
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import find_conflicts_in

logger = logging.getLogger(__name__)

BASE_SCORE = 100
PREFERRED_DATE_BONUS = 20
PREFERRED_TIME_BONUS = 15
MORNING_BONUS = 10
AFTERNOON_BONUS = 5


def score_candidate(
    lesson_date: date,
    start_time: time,
    preferred_dates: set[date],
    preferred_times: set[time],
) -> Tuple[int, List[str]]:
    score = BASE_SCORE
    reasons = ["Available time slot"]
    if lesson_date in preferred_dates:
        score += PREFERRED_DATE_BONUS
        reasons.append("Matches preferred date")
    if start_time in preferred_times:
        score += PREFERRED_TIME_BONUS
        reasons.append("Matches preferred time")
    if 9 <= start_time.hour <= 12:
        score += MORNING_BONUS
        reasons.append("Optimal morning time")
    elif 13 <= start_time.hour <= 17:
        score += AFTERNOON_BONUS
        reasons.append("Good afternoon time")
    return score, reasons


class AutoScheduler(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        availability_service: Optional[AvailabilityService] = None,
        conflict_repository: Optional[ConflictCheckerRepository] = None,
        instructor_repository: Optional[InstructorRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.clock = clock or system_clock
        self.availability_service = availability_service or AvailabilityService(db)
        self.conflict_repository = (
            conflict_repository or RepositoryFactory.create_conflict_checker_repository(db)
        )
        self.instructor_repository = (
            instructor_repository or RepositoryFactory.create_instructor_repository(db)
        )

    def resolve_window(self, request: AutoScheduleRequest) -> Tuple[date, date]:
        """
        Scan window in the school timezone.

        Defaults to today through today + auto_schedule_window_days; never
        starts before today and never spans more than
        auto_schedule_max_window_days.
        """
        today = self.clock.school_today()
        start = max(request.earliest_date or today, today)
        if request.latest_date is None:
            end = start + timedelta(days=settings.auto_schedule_window_days)
        else:
            end = min(
                request.latest_date,
                start + timedelta(days=settings.auto_schedule_max_window_days),
            )
        return start, end

    def _candidate_instructors(self, request: AutoScheduleRequest) -> List[Instructor]:
        if request.instructor_id:
            instructor = self.instructor_repository.get_active(request.instructor_id)
            if instructor is None:
                raise NotFoundException(
                    f"Instructor {request.instructor_id} not found", code="INSTRUCTOR_NOT_FOUND"
                )
            return [instructor]
        return self.instructor_repository.get_qualified_for_course(request.course_id)

    @BaseService.measure_operation("suggest")
    def suggest(self, request: AutoScheduleRequest) -> AutoScheduleResponse:
        """
        Ranked suggestions for the request; an empty list when nothing fits.
        """
        if request.duration_minutes > settings.max_lesson_minutes:
            raise ValidationException(
                f"Lessons cannot exceed {settings.max_lesson_minutes} minutes",
                code="DURATION_TOO_LONG",
            )

        start, end = self.resolve_window(request)
        if end < start:
            return AutoScheduleResponse(suggestions=[], total_suggestions=0, best_suggestion=None)

        instructors = self._candidate_instructors(request)
        bookings = self.conflict_repository.get_active_bookings_in_range(
            [i.id for i in instructors], start, end
        )
        now_local = self.clock.school_now()
        preferred_dates = set(request.preferred_dates)
        preferred_times = set(request.preferred_times)
        duration = request.duration_minutes

        suggestions: List[ScheduleSuggestion] = []
        for instructor in instructors:
            windows = self.availability_service.get_available_windows(instructor.id, start, end)
            day_bookings: Dict[date, list] = bookings.get(instructor.id, {})
            for lesson_date in sorted(windows):
                if request.avoid_weekends and lesson_date.weekday() >= 5:
                    continue
                for interval in windows[lesson_date]:
                    for start_minute in slice_starts(
                        interval, duration, settings.slot_granularity_minutes
                    ):
                        start_time = minutes_to_time(start_minute)
                        if datetime.combine(lesson_date, start_time) <= now_local:
                            continue
                        end_time = minutes_to_time(start_minute + duration)
                        if find_conflicts_in(
                            day_bookings.get(lesson_date, []), start_time, end_time
                        ):
                            continue
                        score, reasons = score_candidate(
                            lesson_date, start_time, preferred_dates, preferred_times
                        )
                        suggestions.append(
                            ScheduleSuggestion(
                                instructor_id=instructor.id,
                                instructor_name=instructor.display_name,
                                date=lesson_date,
                                start_time=start_time,
                                end_time=end_time,
                                score=score,
                                reasons=reasons,
                            )
                        )

        suggestions.sort(key=lambda s: (-s.score, s.date, s.start_time, s.instructor_id))
        top = suggestions[: settings.max_suggestions]
        self.logger.info(
            f"Generated {len(suggestions)} candidate slots for course {request.course_id}, "
            f"returning {len(top)}"
        )
        return AutoScheduleResponse(
            suggestions=top,
            total_suggestions=len(top),
            best_suggestion=top[0] if top else None,
        )
