# backend/app/services/booking_service.py
"""
Booking Service.

Lifecycle coordinator for lesson bookings. It is the only writer of booking
status and times, and it calls the ReminderService hooks inside the same
transaction as the booking change.

Creating or rescheduling a booking is an atomic reservation: the
instructor-day lock row is taken FOR UPDATE, conflicts are checked, then the
booking is written, all in one transaction. On PostgreSQL the
``bookings_no_overlap_per_instructor`` exclusion constraint backs this up; a
violation is reported as the same BookingConflictException.
"""

from __future__ import annotations

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional, cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus
from ..models.reminder import ReminderEntry
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.instructor_repository import InstructorRepository
from ..repositories.schedule_lock_repository import ScheduleLockRepository
from ..schemas.booking import BookingCreate
from ..utils.intervals import overlaps
from ..utils.time_utils import add_minutes, time_to_minutes
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker
from .notification_dispatcher import NotificationDispatcher
from .reminder_service import ReminderService

logger = logging.getLogger(__name__)

INSTRUCTOR_CONFLICT_MESSAGE = "Instructor already has a booking that overlaps this time"
GENERIC_CONFLICT_MESSAGE = "This time slot conflicts with an existing booking"
EXCLUSION_CONSTRAINT = "bookings_no_overlap_per_instructor"


class BookingService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        repository: Optional[BookingRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        availability_service: Optional[AvailabilityService] = None,
        reminder_service: Optional[ReminderService] = None,
        lock_repository: Optional[ScheduleLockRepository] = None,
        instructor_repository: Optional[InstructorRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.clock = clock or system_clock
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.reminder_service = reminder_service or ReminderService(
            db, clock=self.clock, dispatcher=dispatcher
        )
        self.lock_repository = lock_repository or RepositoryFactory.create_schedule_lock_repository(
            db
        )
        self.instructor_repository = (
            instructor_repository or RepositoryFactory.create_instructor_repository(db)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, booking_id: str, for_update: bool = False) -> Booking:
        booking = (
            self.repository.get_for_update(booking_id)
            if for_update
            else self.repository.get_by_id(booking_id)
        )
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", code="BOOKING_NOT_FOUND")
        return booking

    def _ensure_outside_unavailability(
        self, instructor_id: str, lesson_date: date, start_time: time, end_time: time
    ) -> None:
        lesson = (time_to_minutes(start_time), time_to_minutes(end_time))
        for blocked in self.availability_service.get_unavailable_intervals(
            instructor_id, lesson_date
        ):
            if overlaps(lesson, blocked):
                raise BusinessRuleException(
                    "Instructor is unavailable at this time",
                    code="INSTRUCTOR_UNAVAILABLE",
                    details={"date": lesson_date.isoformat()},
                )

    def _raise_if_conflicts(
        self,
        instructor_id: str,
        lesson_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        conflicts = self.conflict_checker.check_conflicts(
            instructor_id, lesson_date, start_time, end_time, exclude_booking_id
        )
        if conflicts:
            prometheus_metrics.inc_booking_conflict("check")
            raise BookingConflictException(
                message=INSTRUCTOR_CONFLICT_MESSAGE,
                conflicts=[b.to_dict() for b in conflicts],
            )

    @staticmethod
    def _is_exclusion_violation(exc: IntegrityError) -> bool:
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", "") if diag is not None else ""
        return constraint_name == EXCLUSION_CONSTRAINT or EXCLUSION_CONSTRAINT in str(orig)

    def _conflict_from_integrity_error(
        self, exc: IntegrityError, details: Dict[str, Any]
    ) -> Exception:
        if self._is_exclusion_violation(exc):
            prometheus_metrics.inc_booking_conflict("constraint")
            return BookingConflictException(message=INSTRUCTOR_CONFLICT_MESSAGE, details=details)
        return BookingConflictException(message=GENERIC_CONFLICT_MESSAGE, details=details)

    def _require_instructor(self, instructor_id: str) -> None:
        if self.instructor_repository.get_active(instructor_id) is None:
            raise NotFoundException(
                f"Instructor {instructor_id} not found", code="INSTRUCTOR_NOT_FOUND"
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(self, booking_data: BookingCreate) -> Booking:
        """
        Reserve a lesson.

        Raises:
            ValidationException: bad time range or lesson length
            NotFoundException: unknown or inactive instructor
            BusinessRuleException: the lesson overlaps an unavailability override
            BookingConflictException: overlapping active bookings (listed in details)
        """
        end_time = cast(time, booking_data.end_time)
        duration = self.conflict_checker.validate_time_range(booking_data.start_time, end_time)
        self._require_instructor(booking_data.instructor_id)
        now = self.clock.now()
        confirm = booking_data.status == BookingStatus.CONFIRMED.value

        with self.transaction():
            self.lock_repository.acquire(booking_data.instructor_id, booking_data.booking_date)
            self._ensure_outside_unavailability(
                booking_data.instructor_id, booking_data.booking_date, booking_data.start_time, end_time
            )
            self._raise_if_conflicts(
                booking_data.instructor_id, booking_data.booking_date, booking_data.start_time, end_time
            )
            try:
                booking = self.repository.create(
                    student_id=booking_data.student_id,
                    instructor_id=booking_data.instructor_id,
                    course_id=booking_data.course_id,
                    booking_date=booking_data.booking_date,
                    start_time=booking_data.start_time,
                    end_time=end_time,
                    duration_minutes=duration,
                    notes=booking_data.notes,
                    status=booking_data.status,
                    confirmed_at=now if confirm else None,
                )
            except IntegrityError as exc:
                raise self._conflict_from_integrity_error(
                    exc,
                    {
                        "instructor_id": booking_data.instructor_id,
                        "booking_date": booking_data.booking_date.isoformat(),
                    },
                ) from exc

            if confirm:
                self.reminder_service.on_booking_confirmed(booking)

        self.log_operation("create_booking", booking_id=booking.id, status=booking.status)
        return booking

    @BaseService.measure_operation("update_status")
    def update_status(
        self, booking_id: str, new_status: str, reason: Optional[str] = None
    ) -> Booking:
        """
        Move a booking through its lifecycle.

        -> confirmed creates reminders; -> cancelled, rescheduled or completed
        cancels pending ones.

        Raises:
            NotFoundException: unknown booking
            InvalidStatusTransitionException: transition not allowed from the current status
        """
        new_status = BookingStatus(new_status).value

        with self.transaction():
            booking = self._get_or_404(booking_id, for_update=True)
            current = cast(str, booking.status)
            if not booking.can_transition_to(new_status):
                raise InvalidStatusTransitionException(current, new_status)

            now = self.clock.now()
            if new_status == BookingStatus.CONFIRMED.value:
                booking.mark_confirmed(now)
                self.repository.flush()
                self.reminder_service.on_booking_confirmed(booking)
            elif new_status == BookingStatus.CANCELLED.value:
                booking.mark_cancelled(now, reason)
                self.reminder_service.on_booking_cancelled(booking)
            elif new_status in (BookingStatus.COMPLETED.value, BookingStatus.RESCHEDULED.value):
                booking.status = new_status
                self.reminder_service.on_booking_cancelled(booking)
            else:
                booking.status = new_status
            self.repository.flush()

        self.log_operation(
            "update_status", booking_id=booking_id, from_status=current, to_status=new_status
        )
        return booking

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        return self.update_status(booking_id, BookingStatus.CANCELLED.value, reason)

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self,
        booking_id: str,
        new_date: date,
        new_start_time: time,
        duration_minutes: Optional[int] = None,
    ) -> Booking:
        """
        Move an active booking to a new date/time in place.

        The booking keeps its id and status; pending reminders are recomputed
        from the new start and cancelled if their new send time has passed.
        """
        with self.transaction():
            booking = self._get_or_404(booking_id, for_update=True)
            if not booking.is_active:
                raise BusinessRuleException(
                    f"Cannot reschedule a {booking.status} booking",
                    code="BOOKING_NOT_ACTIVE",
                    details={"status": booking.status},
                )

            duration = duration_minutes or cast(int, booking.duration_minutes)
            try:
                new_end_time = add_minutes(new_start_time, duration)
            except ValueError as exc:
                raise ValidationException(
                    "Lesson must end on the same day it starts", code="INVALID_TIME_RANGE"
                ) from exc
            self.conflict_checker.validate_time_range(new_start_time, new_end_time)
            instructor_id = cast(str, booking.instructor_id)
            self.lock_repository.acquire_many(
                instructor_id, [cast(date, booking.booking_date), new_date]
            )
            self._ensure_outside_unavailability(
                instructor_id, new_date, new_start_time, new_end_time
            )
            self._raise_if_conflicts(
                instructor_id, new_date, new_start_time, new_end_time, exclude_booking_id=booking.id
            )

            booking.booking_date = new_date
            booking.start_time = new_start_time
            booking.end_time = new_end_time
            booking.duration_minutes = duration
            try:
                self.repository.flush()
            except IntegrityError as exc:
                raise self._conflict_from_integrity_error(
                    exc, {"booking_id": booking_id, "booking_date": new_date.isoformat()}
                ) from exc

            self.reminder_service.on_booking_rescheduled(booking)

        self.log_operation("reschedule_booking", booking_id=booking_id, new_date=new_date.isoformat())
        return booking

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_booking(self, booking_id: str) -> Booking:
        return self._get_or_404(booking_id)

    @BaseService.measure_operation("get_instructor_schedule")
    def get_instructor_schedule(
        self,
        instructor_id: str,
        start_date: date,
        end_date: date,
        include_inactive: bool = False,
    ) -> List[Booking]:
        if end_date < start_date:
            raise ValidationException(
                "end_date must not be before start_date", code="INVALID_DATE_RANGE"
            )
        if (end_date - start_date).days + 1 > settings.availability_max_range_days:
            raise ValidationException(
                f"Date range cannot exceed {settings.availability_max_range_days} days",
                code="DATE_RANGE_TOO_WIDE",
            )
        return self.repository.get_instructor_bookings(
            instructor_id, start_date, end_date, include_inactive=include_inactive
        )

    def list_reminders(self, booking_id: str) -> List[ReminderEntry]:
        self._get_or_404(booking_id)
        return self.reminder_service.list_for_booking(booking_id)
