# backend/app/routes/v1/schedule.py
"""
Instructor schedule routes - API v1

Endpoints:
    GET / - Bookings and stored slots for an instructor over a date range
    POST /check-conflicts - Active bookings that overlap a proposed lesson
"""

import asyncio
from datetime import date
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_availability_service, get_booking_service, get_conflict_checker
from ...core.exceptions import DomainException, handle_domain_exception
from ...schemas.availability import TimeSlotResponse
from ...schemas.booking import (
    BookingResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ScheduleResponse,
)
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedule-v1"])


@router.get("", response_model=ScheduleResponse)
async def get_schedule(
    instructor_id: str = Query(..., min_length=1),
    start_date: date = Query(...),
    end_date: date = Query(...),
    include_inactive: bool = Query(False, description="Include cancelled and completed lessons"),
    booking_service: BookingService = Depends(get_booking_service),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ScheduleResponse:
    def _load() -> tuple:
        bookings = booking_service.get_instructor_schedule(
            instructor_id, start_date, end_date, include_inactive
        )
        return bookings, availability_service.get_slots(instructor_id, start_date, end_date)

    try:
        bookings, slots = await asyncio.to_thread(_load)
    except DomainException as e:
        handle_domain_exception(e)

    return ScheduleResponse(
        instructor_id=instructor_id,
        start_date=start_date,
        end_date=end_date,
        bookings=[BookingResponse(**b.to_dict()) for b in bookings],
        slots=[TimeSlotResponse(**s.to_dict()) for s in slots],
    )


@router.post("/check-conflicts", response_model=ConflictCheckResponse)
async def check_conflicts(
    check: ConflictCheckRequest,
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> ConflictCheckResponse:
    def _check() -> list:
        conflict_checker.validate_time_range(check.start_time, check.end_time)
        return conflict_checker.check_conflicts(
            check.instructor_id,
            check.date,
            check.start_time,
            check.end_time,
            exclude_booking_id=check.exclude_booking_id,
        )

    try:
        conflicts = await asyncio.to_thread(_check)
    except DomainException as e:
        handle_domain_exception(e)

    return ConflictCheckResponse(
        has_conflicts=bool(conflicts),
        conflicts=[BookingResponse(**b.to_dict()) for b in conflicts],
    )
