# backend/app/routes/v1/availability.py
"""
Instructor availability routes - API v1

Versioned availability endpoints under /api/v1/availability.

Endpoints:
    GET / - Effective availability windows for a date range
    POST / - Create one slot or a batch of slots (all or nothing)
    PUT / - Mark one range of one date available or unavailable
"""

import asyncio
from datetime import date
import logging
from typing import List, Union

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_availability_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...schemas.availability import (
    AvailabilityResponse,
    AvailabilityUpdate,
    AvailabilityUpdateResponse,
    AvailabilityWindow,
    DayAvailability,
    SlotCreateResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from ...services.availability_service import AvailabilityService, SlotInput

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    instructor_id: str = Query(..., min_length=1),
    start_date: date = Query(..., description="First date (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last date, inclusive (YYYY-MM-DD)"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        days = await asyncio.to_thread(
            availability_service.get_availability, instructor_id, start_date, end_date
        )
    except DomainException as e:
        handle_domain_exception(e)

    return AvailabilityResponse(
        instructor_id=instructor_id,
        start_date=start_date,
        end_date=end_date,
        availability=[
            DayAvailability(
                date=day["date"],
                slots=[AvailabilityWindow(start_time=s, end_time=e) for s, e in day["windows"]],
            )
            for day in days
        ],
    )


@router.post("", response_model=SlotCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_slots(
    payload: Union[TimeSlotCreate, List[TimeSlotCreate]],
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SlotCreateResponse:
    """
    Create availability slots.

    Accepts a single slot or a list. A malformed or overlapping slot rejects
    the whole batch; the batch is validated before instructors are looked up.
    """
    items = payload if isinstance(payload, list) else [payload]
    raw: List[SlotInput] = [item.model_dump() for item in items]  # type: ignore[misc]

    try:
        created = await asyncio.to_thread(availability_service.create_slots, raw)
    except DomainException as e:
        handle_domain_exception(e)

    return SlotCreateResponse(
        created=len(created),
        slots=[TimeSlotResponse(**slot.to_dict()) for slot in created],
    )


@router.put("", response_model=AvailabilityUpdateResponse)
async def update_availability(
    update: AvailabilityUpdate,
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityUpdateResponse:
    def _update() -> list:
        availability_service.require_instructor(update.instructor_id)
        return availability_service.update_availability(
            update.instructor_id,
            update.date,
            update.start_time,
            update.end_time,
            update.is_available,
        )

    try:
        slots = await asyncio.to_thread(_update)
    except DomainException as e:
        handle_domain_exception(e)

    return AvailabilityUpdateResponse(
        instructor_id=update.instructor_id,
        date=update.date.isoformat(),
        slots=[TimeSlotResponse(**slot.to_dict()) for slot in slots],
    )
