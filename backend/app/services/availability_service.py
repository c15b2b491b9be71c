# backend/app/services/availability_service.py
"""
Availability Service.

Owns instructor time slots:
- batch creation with format, recurrence and overlap validation
- effective availability per date (recurring templates expanded, explicit
  slots merged, unavailability overrides subtracted)
- single-range updates with split/merge semantics

Recurring slots are stored once as templates and expanded on demand inside a
bounded range; see ``app.utils.recurrence.expand_recurrence``.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, time, timedelta
import logging
from typing import Dict, List, NamedTuple, Optional, Tuple, TypedDict, cast

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import AvailabilityOverlapException, NotFoundException, ValidationException
from ..models.availability import RecurrencePattern, TimeSlot
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.instructor_repository import InstructorRepository
from ..repositories.schedule_lock_repository import ScheduleLockRepository
from ..utils.intervals import Interval, coalesce, overlaps, subtract
from ..utils.recurrence import expand_recurrence
from ..utils.time_utils import (
    format_time,
    minutes_to_time,
    parse_date_str,
    parse_time_str,
    time_to_minutes,
)
from .base import BaseService

logger = logging.getLogger(__name__)

RECURRENCE_PATTERNS = {p.value for p in RecurrencePattern}


class SlotInput(TypedDict, total=False):
    """Raw slot as received from the API."""

    instructor_id: str
    date: str
    start_time: str
    end_time: str
    is_available: bool
    is_recurring: bool
    recurrence_pattern: Optional[str]
    recurrence_end_date: Optional[str]


class ParsedSlot(NamedTuple):
    instructor_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool
    is_recurring: bool
    recurrence_pattern: Optional[str]
    recurrence_end_date: Optional[date]

    @property
    def interval(self) -> Interval:
        return (time_to_minutes(self.start_time), time_to_minutes(self.end_time))


class DayIntervals(NamedTuple):
    available: List[Interval]
    unavailable: List[Interval]


def _range_label(interval: Interval) -> str:
    return f"{format_time(minutes_to_time(interval[0]))}-{format_time(minutes_to_time(interval[1]))}"


def _slot_interval(slot: TimeSlot) -> Interval:
    return (time_to_minutes(cast(time, slot.start_time)), time_to_minutes(cast(time, slot.end_time)))


class AvailabilityService(BaseService):
    """Service layer for instructor availability slots."""

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        lock_repository: Optional[ScheduleLockRepository] = None,
        instructor_repository: Optional[InstructorRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.lock_repository = lock_repository or RepositoryFactory.create_schedule_lock_repository(
            db
        )
        self.instructor_repository = (
            instructor_repository or RepositoryFactory.create_instructor_repository(db)
        )

    def require_instructor(self, instructor_id: str) -> None:
        if self.instructor_repository.get_active(instructor_id) is None:
            raise NotFoundException(
                f"Instructor {instructor_id} not found", code="INSTRUCTOR_NOT_FOUND"
            )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _parse_slot(self, raw: SlotInput, index: int) -> ParsedSlot:
        details: Dict[str, object] = {"index": index}
        try:
            slot_date = parse_date_str(str(raw.get("date", "")))
            start = parse_time_str(str(raw.get("start_time", "")))
            end = parse_time_str(str(raw.get("end_time", "")))
            end_raw = raw.get("recurrence_end_date")
            recurrence_end = parse_date_str(end_raw) if end_raw else None
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_FORMAT", details=details) from exc

        instructor_id = raw.get("instructor_id")
        if not instructor_id:
            raise ValidationException(
                "instructor_id is required", code="MISSING_INSTRUCTOR", details=details
            )
        if end <= start:
            raise ValidationException(
                "End time must be after start time", code="INVALID_TIME_RANGE", details=details
            )

        is_recurring = bool(raw.get("is_recurring", False))
        pattern = raw.get("recurrence_pattern") if is_recurring else None
        if is_recurring:
            if pattern not in RECURRENCE_PATTERNS:
                raise ValidationException(
                    "Recurring slots need a recurrence_pattern of daily, weekly or monthly",
                    code="INVALID_RECURRENCE",
                    details=details,
                )
            if recurrence_end is not None and recurrence_end < slot_date:
                raise ValidationException(
                    "recurrence_end_date cannot be before the slot date",
                    code="INVALID_RECURRENCE",
                    details=details,
                )
        else:
            recurrence_end = None

        return ParsedSlot(
            instructor_id=instructor_id,
            date=slot_date,
            start_time=start,
            end_time=end,
            is_available=bool(raw.get("is_available", True)),
            is_recurring=is_recurring,
            recurrence_pattern=pattern,
            recurrence_end_date=recurrence_end,
        )

    def _occurrences(self, slot: ParsedSlot) -> List[date]:
        if not slot.is_recurring:
            return [slot.date]
        last = slot.recurrence_end_date or slot.date + timedelta(days=settings.recurrence_horizon_days)
        return expand_recurrence(slot, slot.date, last)

    def _check_batch_overlaps(self, instructor_id: str, parsed: List[ParsedSlot]) -> None:
        """
        Reject any available slot overlapping a stored available interval or an
        earlier available slot of the same batch.
        """
        candidates = [(p, self._occurrences(p)) for p in parsed if p.is_available]
        all_dates = [d for _, dates in candidates for d in dates]
        if not all_dates:
            return

        range_start, range_end = min(all_dates), max(all_dates)
        existing = self.repository.get_slots_in_range(
            instructor_id, range_start, range_end, is_available=True
        )
        taken: Dict[date, List[Interval]] = defaultdict(list)
        for slot in existing:
            for day in self._slot_dates(slot, range_start, range_end):
                taken[day].append(_slot_interval(slot))

        for new_slot, dates in candidates:
            for day in dates:
                for interval in taken[day]:
                    if overlaps(new_slot.interval, interval):
                        raise AvailabilityOverlapException(
                            specific_date=day.isoformat(),
                            new_range=_range_label(new_slot.interval),
                            conflicting_range=_range_label(interval),
                        )
            for day in dates:
                taken[day].append(new_slot.interval)

    @BaseService.measure_operation("create_slots")
    def create_slots(self, slots: List[SlotInput]) -> List[TimeSlot]:
        """
        Create a batch of slots, all or nothing.

        Raises:
            ValidationException: malformed date/time, bad range or recurrence
            NotFoundException: a well-formed slot names an unknown instructor
            AvailabilityOverlapException: an available slot overlaps an existing
                available interval (stored or earlier in the batch)
        """
        if not slots:
            raise ValidationException("At least one slot is required", code="EMPTY_BATCH")

        parsed = [self._parse_slot(raw, index) for index, raw in enumerate(slots)]
        by_instructor: Dict[str, List[ParsedSlot]] = defaultdict(list)
        for p in parsed:
            by_instructor[p.instructor_id].append(p)
        for instructor_id in sorted(by_instructor):
            self.require_instructor(instructor_id)

        with self.transaction():
            for instructor_id in sorted(by_instructor):
                # Every day a recurring slot produces is locked, not just its template date
                self.lock_repository.acquire_many(
                    instructor_id,
                    [day for p in by_instructor[instructor_id] for day in self._occurrences(p)],
                )
                self._check_batch_overlaps(instructor_id, by_instructor[instructor_id])

            created = [
                self.repository.create(
                    instructor_id=p.instructor_id,
                    date=p.date,
                    start_time=p.start_time,
                    end_time=p.end_time,
                    is_available=p.is_available,
                    is_recurring=p.is_recurring,
                    recurrence_pattern=p.recurrence_pattern,
                    recurrence_end_date=p.recurrence_end_date,
                )
                for p in parsed
            ]

        self.log_operation("create_slots", count=len(created))
        return created

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def _slot_dates(slot: TimeSlot, range_start: date, range_end: date) -> List[date]:
        if not slot.is_recurring:
            slot_date = cast(date, slot.date)
            return [slot_date] if range_start <= slot_date <= range_end else []
        return expand_recurrence(slot, range_start, range_end)

    def _validate_range(self, start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise ValidationException(
                "end_date must not be before start_date", code="INVALID_DATE_RANGE"
            )
        if (end_date - start_date).days + 1 > settings.availability_max_range_days:
            raise ValidationException(
                f"Date range cannot exceed {settings.availability_max_range_days} days",
                code="DATE_RANGE_TOO_WIDE",
            )

    def get_day_intervals(
        self, instructor_id: str, start_date: date, end_date: date
    ) -> Dict[date, DayIntervals]:
        """Raw available and unavailable intervals per date, recurring instances included."""
        available: Dict[date, List[Interval]] = defaultdict(list)
        unavailable: Dict[date, List[Interval]] = defaultdict(list)
        for slot in self.repository.get_slots_in_range(instructor_id, start_date, end_date):
            target = available if slot.is_available else unavailable
            for day in self._slot_dates(slot, start_date, end_date):
                target[day].append(_slot_interval(slot))

        days = sorted(set(available) | set(unavailable))
        return {
            day: DayIntervals(sorted(available.get(day, [])), sorted(unavailable.get(day, [])))
            for day in days
        }

    def get_available_windows(
        self, instructor_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[Interval]]:
        """Effective free windows per date with overrides subtracted; empty dates omitted."""
        windows: Dict[date, List[Interval]] = {}
        for day, intervals in self.get_day_intervals(instructor_id, start_date, end_date).items():
            effective = subtract(intervals.available, intervals.unavailable)
            if effective:
                windows[day] = effective
        return windows

    @BaseService.measure_operation("get_availability")
    def get_availability(
        self, instructor_id: str, start_date: date, end_date: date
    ) -> List[Dict[str, object]]:
        """
        Available windows per date inside [start_date, end_date].

        Returns:
            [{"date": date, "windows": [(start_time, end_time), ...]}] ordered
            by date then start time
        """
        self._validate_range(start_date, end_date)
        windows = self.get_available_windows(instructor_id, start_date, end_date)
        return [
            {
                "date": day,
                "windows": [(minutes_to_time(s), minutes_to_time(e)) for s, e in windows[day]],
            }
            for day in sorted(windows)
        ]

    def get_unavailable_intervals(self, instructor_id: str, target_date: date) -> List[Interval]:
        intervals = self.get_day_intervals(instructor_id, target_date, target_date)
        day = intervals.get(target_date)
        return coalesce(day.unavailable) if day else []

    def get_slots(self, instructor_id: str, start_date: date, end_date: date) -> List[TimeSlot]:
        """Stored slots (recurring templates included) that touch the range."""
        self._validate_range(start_date, end_date)
        return self.repository.get_slots_in_range(instructor_id, start_date, end_date)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def _recurring_intervals(self, instructor_id: str, target_date: date) -> DayIntervals:
        """Available and unavailable intervals recurring templates produce on one date."""
        available: List[Interval] = []
        unavailable: List[Interval] = []
        for slot in self.repository.get_slots_in_range(instructor_id, target_date, target_date):
            if not slot.is_recurring or not expand_recurrence(slot, target_date, target_date):
                continue
            (available if slot.is_available else unavailable).append(_slot_interval(slot))
        return DayIntervals(coalesce(available), coalesce(unavailable))

    @staticmethod
    def _check_recurring_for_available(
        target_date: date, target: Interval, recurring: DayIntervals
    ) -> bool:
        """
        Validate marking ``target`` available against recurring templates.

        Returns True when recurring availability already covers the whole
        range, in which case no explicit available row may be written.

        Raises:
            ValidationException: a recurring unavailability covers part of the
                range; only editing that recurring slot can free it
            AvailabilityOverlapException: a recurring available slot covers
                only part of the range
        """
        for blocked in recurring.unavailable:
            if overlaps(blocked, target):
                raise ValidationException(
                    "Range is blocked by a recurring unavailability; change the recurring slot instead",
                    code="RECURRING_UNAVAILABILITY",
                    details={"date": target_date.isoformat(), "blocked_slot": _range_label(blocked)},
                )
        if not subtract([target], recurring.available):
            return True
        for interval in recurring.available:
            if overlaps(interval, target):
                raise AvailabilityOverlapException(
                    specific_date=target_date.isoformat(),
                    new_range=_range_label(target),
                    conflicting_range=_range_label(interval),
                )
        return False

    @BaseService.measure_operation("update_availability")
    def update_availability(
        self,
        instructor_id: str,
        target_date: date,
        start_time: time,
        end_time: time,
        is_available: bool,
    ) -> List[TimeSlot]:
        """
        Set one range of one date available or unavailable.

        Slots of the opposite kind that overlap the range are split around it
        (an available 09:00-17:00 marked unavailable 12:00-13:00 becomes
        09:00-12:00 and 13:00-17:00 plus an override). Slots of the same kind
        that overlap or touch the range are merged into one row. An exact
        match is reused, so its flag is simply flipped.

        Marking a range available that a recurring template already makes
        available only removes the explicit overrides on it.

        Returns:
            Explicit slots stored for the date, ordered by start time

        Raises:
            ValidationException: bad range, or a recurring unavailability
                covers the range being marked available
            AvailabilityOverlapException: the range partly overlaps a
                recurring available slot
        """
        if end_time <= start_time:
            raise ValidationException(
                "End time must be after start time", code="INVALID_TIME_RANGE"
            )
        target: Interval = (time_to_minutes(start_time), time_to_minutes(end_time))

        with self.transaction():
            self.lock_repository.acquire(instructor_id, target_date)
            covered_by_recurring = is_available and self._check_recurring_for_available(
                target_date, target, self._recurring_intervals(instructor_id, target_date)
            )
            explicit = self.repository.get_explicit_slots_for_date(instructor_id, target_date)

            reuse = next((s for s in explicit if _slot_interval(s) == target), None)
            opposite: List[TimeSlot] = []
            same: List[TimeSlot] = []
            for slot in explicit:
                if slot is reuse:
                    continue
                interval = _slot_interval(slot)
                if bool(slot.is_available) != is_available:
                    if overlaps(interval, target):
                        opposite.append(slot)
                elif interval[0] <= target[1] and target[0] <= interval[1]:
                    same.append(slot)

            for slot in opposite:
                self._split_around(slot, target)

            if covered_by_recurring:
                if reuse is not None:
                    self.repository.delete_entity(reuse)
            else:
                merged = coalesce([target] + [_slot_interval(s) for s in same])[0]
                row = reuse or (same.pop(0) if same else None)
                if row is None:
                    self.repository.create(
                        instructor_id=instructor_id,
                        date=target_date,
                        start_time=minutes_to_time(merged[0]),
                        end_time=minutes_to_time(merged[1]),
                        is_available=is_available,
                        is_recurring=False,
                    )
                else:
                    row.start_time = minutes_to_time(merged[0])
                    row.end_time = minutes_to_time(merged[1])
                    row.is_available = is_available
                for slot in same:
                    self.repository.delete_entity(slot)
            self.repository.flush()

            result = self.repository.get_explicit_slots_for_date(instructor_id, target_date)

        self.log_operation(
            "update_availability",
            instructor_id=instructor_id,
            date=target_date.isoformat(),
            is_available=is_available,
        )
        return result

    def _split_around(self, slot: TimeSlot, removal: Interval) -> None:
        pieces = subtract([_slot_interval(slot)], [removal])
        if not pieces:
            self.repository.delete_entity(slot)
            return
        first, rest = pieces[0], pieces[1:]
        slot.start_time = minutes_to_time(first[0])
        slot.end_time = minutes_to_time(first[1])
        for piece in rest:
            self.repository.create(
                instructor_id=slot.instructor_id,
                date=slot.date,
                start_time=minutes_to_time(piece[0]),
                end_time=minutes_to_time(piece[1]),
                is_available=slot.is_available,
                is_recurring=False,
            )
