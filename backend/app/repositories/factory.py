# backend/app/repositories/factory.py
"""
Repository Factory.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .booking_repository import BookingRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .instructor_repository import InstructorRepository
    from .reminder_repository import ReminderRepository
    from .schedule_lock_repository import ScheduleLockRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for availability operations."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_reminder_repository(db: Session) -> "ReminderRepository":
        from .reminder_repository import ReminderRepository

        return ReminderRepository(db)

    @staticmethod
    def create_instructor_repository(db: Session) -> "InstructorRepository":
        from .instructor_repository import InstructorRepository

        return InstructorRepository(db)

    @staticmethod
    def create_schedule_lock_repository(db: Session) -> "ScheduleLockRepository":
        """Create repository for instructor-day schedule locks."""
        from .schedule_lock_repository import ScheduleLockRepository

        return ScheduleLockRepository(db)
