# backend/app/repositories/booking_repository.py
"""
Booking Repository.

Implements booking data access using the self-contained booking fields
(date, start_time, end_time). Conflict queries live in
ConflictCheckerRepository.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking and lock its row for the rest of the transaction."""
        try:
            return cast(
                Optional[Booking],
                self.db.query(Booking)
                .filter(Booking.id == booking_id)
                .with_for_update()
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock booking: {str(e)}")

    def get_instructor_bookings(
        self,
        instructor_id: str,
        start_date: date,
        end_date: date,
        include_inactive: bool = False,
    ) -> List[Booking]:
        """
        Bookings for an instructor within a date range, ordered by date then time.

        Args:
            include_inactive: also return completed, cancelled and rescheduled bookings
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.instructor_id == instructor_id,
                Booking.booking_date >= start_date,
                Booking.booking_date <= end_date,
            )
            if not include_inactive:
                query = query.filter(Booking.status.in_(sorted(ACTIVE_STATUSES)))
            return cast(
                List[Booking],
                query.order_by(Booking.booking_date, Booking.start_time, Booking.id).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructor bookings: {str(e)}")
            raise RepositoryException(f"Failed to get bookings: {str(e)}")
