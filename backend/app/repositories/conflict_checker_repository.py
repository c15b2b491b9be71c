# backend/app/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository.

Read-only queries over active bookings used for overlap detection. All
queries filter on the booking's own date/time fields.
"""

from datetime import date
import logging
from typing import Dict, Iterable, List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_active_bookings_for_date(
        self, instructor_id: str, check_date: date, exclude_booking_id: Optional[str] = None
    ) -> List[Booking]:
        """
        Active bookings of one instructor on one date, ordered by start time then id.

        Args:
            instructor_id: The instructor to check
            check_date: The date to check for conflicts
            exclude_booking_id: Optional booking ID to exclude from results
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.instructor_id == instructor_id,
                Booking.booking_date == check_date,
                Booking.status.in_(sorted(ACTIVE_STATUSES)),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)

            return cast(List[Booking], query.order_by(Booking.start_time, Booking.id).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_active_bookings_in_range(
        self, instructor_ids: Iterable[str], start_date: date, end_date: date
    ) -> Dict[str, Dict[date, List[Booking]]]:
        """
        Active bookings for several instructors across a date range in one query.

        Returns:
            {instructor_id: {date: [bookings ordered by start time]}}
        """
        ids = list(instructor_ids)
        grouped: Dict[str, Dict[date, List[Booking]]] = {iid: {} for iid in ids}
        if not ids:
            return grouped
        try:
            bookings = (
                self.db.query(Booking)
                .filter(
                    Booking.instructor_id.in_(ids),
                    Booking.booking_date >= start_date,
                    Booking.booking_date <= end_date,
                    Booking.status.in_(sorted(ACTIVE_STATUSES)),
                )
                .order_by(Booking.booking_date, Booking.start_time, Booking.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for range: {str(e)}")
            raise RepositoryException(f"Failed to get bookings: {str(e)}")

        for booking in bookings:
            grouped[booking.instructor_id].setdefault(booking.booking_date, []).append(booking)
        return grouped
