# backend/app/repositories/availability_repository.py
"""
Availability Repository.

Data access for instructor time slots: explicit per-date slots, recurring
templates and unavailability overrides. Recurrence expansion itself lives in
``app.utils.recurrence``; this layer only narrows which templates can produce
instances in a range.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import TimeSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[TimeSlot]):
    def __init__(self, db: Session):
        super().__init__(db, TimeSlot)
        self.logger = logging.getLogger(__name__)

    def get_slots_in_range(
        self,
        instructor_id: str,
        start_date: date,
        end_date: date,
        is_available: Optional[bool] = None,
    ) -> List[TimeSlot]:
        """
        Explicit slots dated inside the range plus recurring templates that
        can produce an instance inside it.

        Ordered by date, start time, then id.
        """
        try:
            explicit = and_(
                TimeSlot.is_recurring.is_(False),
                TimeSlot.date >= start_date,
                TimeSlot.date <= end_date,
            )
            recurring = and_(
                TimeSlot.is_recurring.is_(True),
                TimeSlot.date <= end_date,
                or_(
                    TimeSlot.recurrence_end_date.is_(None),
                    TimeSlot.recurrence_end_date >= start_date,
                ),
            )
            query = self.db.query(TimeSlot).filter(
                TimeSlot.instructor_id == instructor_id, or_(explicit, recurring)
            )
            if is_available is not None:
                query = query.filter(TimeSlot.is_available.is_(is_available))
            return cast(
                List[TimeSlot],
                query.order_by(TimeSlot.date, TimeSlot.start_time, TimeSlot.id).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slots for range: {str(e)}")
            raise RepositoryException(f"Failed to get availability slots: {str(e)}")

    def get_explicit_slots_for_date(self, instructor_id: str, target_date: date) -> List[TimeSlot]:
        """Non-recurring slots stored for exactly one date, ordered by start time."""
        try:
            return cast(
                List[TimeSlot],
                self.db.query(TimeSlot)
                .filter(
                    TimeSlot.instructor_id == instructor_id,
                    TimeSlot.date == target_date,
                    TimeSlot.is_recurring.is_(False),
                )
                .order_by(TimeSlot.start_time, TimeSlot.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slots for date: {str(e)}")
            raise RepositoryException(f"Failed to get availability slots: {str(e)}")

