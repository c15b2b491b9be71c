# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the scheduling engine.

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_conflict_checker_repository(db)
    bookings = repository.get_active_bookings_for_date(instructor_id, lesson_date)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .instructor_repository import InstructorRepository
from .reminder_repository import ReminderRepository
from .schedule_lock_repository import ScheduleLockRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "InstructorRepository",
    "ReminderRepository",
    "RepositoryFactory",
    "ScheduleLockRepository",
]
