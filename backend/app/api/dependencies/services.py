# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Tests override
``get_clock`` and ``get_notification_dispatcher`` to pin time and capture
deliveries.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, system_clock
from ...services.auto_scheduler import AutoScheduler
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.notification_dispatcher import NotificationDispatcher, default_dispatcher
from ...services.reminder_service import ReminderService
from .database import get_db

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return system_clock


def get_notification_dispatcher() -> NotificationDispatcher:
    return default_dispatcher


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_auto_scheduler(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AutoScheduler:
    return AutoScheduler(db, clock=clock)


def get_reminder_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReminderService:
    return ReminderService(db, clock=clock, dispatcher=dispatcher)


def get_booking_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        clock: Time source for lifecycle stamps and reminder math
        dispatcher: Notification dispatcher handed to the reminder service
    """
    return BookingService(db, clock=clock, dispatcher=dispatcher)
