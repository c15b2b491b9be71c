# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import verify_cron_secret
from .database import get_db
from .services import (
    get_auto_scheduler,
    get_availability_service,
    get_booking_service,
    get_clock,
    get_conflict_checker,
    get_notification_dispatcher,
    get_reminder_service,
)

__all__ = [
    # Auth
    "verify_cron_secret",
    # Database
    "get_db",
    # Services
    "get_auto_scheduler",
    "get_availability_service",
    "get_booking_service",
    "get_clock",
    "get_conflict_checker",
    "get_notification_dispatcher",
    "get_reminder_service",
]
