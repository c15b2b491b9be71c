# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Reserve a lesson
    GET /{booking_id} - Booking details
    PATCH /{booking_id}/status - Move a booking through its lifecycle
    POST /{booking_id}/reschedule - Move a booking to a new date/time
    POST /{booking_id}/cancel - Cancel a booking
    GET /{booking_id}/reminders - Reminder entries for a booking
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    ReminderResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Reserve a lesson.

    Returns 409 with the overlapping bookings when the instructor is already
    booked, 422 when the time falls inside an unavailability override.
    """
    try:
        booking = await asyncio.to_thread(booking_service.create_booking, booking_data)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.update_status, booking_id, update.status.value, update.reason
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    reschedule: BookingReschedule,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking,
            booking_id,
            reschedule.booking_date,
            reschedule.start_time,
            reschedule.duration_minutes,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancel] = None,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking, booking_id, cancel_data.reason if cancel_data else None
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse(**booking.to_dict())


@router.get("/{booking_id}/reminders", response_model=List[ReminderResponse])
async def list_booking_reminders(
    booking_id: str,
    booking_service: BookingService = Depends(get_booking_service),
) -> List[ReminderResponse]:
    try:
        entries = await asyncio.to_thread(booking_service.list_reminders, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return [ReminderResponse(**entry.to_dict()) for entry in entries]
