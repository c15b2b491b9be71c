"""
Reminder Repository.

Data access for reminder entries. The sweep relies on
``lock_entry`` taking a row lock with SKIP LOCKED so two concurrent
sweeps never pick the same entry.
"""

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.reminder import ReminderEntry, ReminderStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReminderRepository(BaseRepository[ReminderEntry]):
    def __init__(self, db: Session):
        super().__init__(db, ReminderEntry)
        self.logger = logging.getLogger(__name__)

    def get_for_booking(self, booking_id: str) -> List[ReminderEntry]:
        """All entries of a booking, largest offset first."""
        try:
            return cast(
                List[ReminderEntry],
                self.db.query(ReminderEntry)
                .filter(ReminderEntry.booking_id == booking_id)
                .order_by(ReminderEntry.offset_minutes.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reminders for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get reminders: {str(e)}")

    def get_pending_for_booking(self, booking_id: str) -> List[ReminderEntry]:
        try:
            return cast(
                List[ReminderEntry],
                self.db.query(ReminderEntry)
                .filter(
                    ReminderEntry.booking_id == booking_id,
                    ReminderEntry.status == ReminderStatus.PENDING.value,
                )
                .order_by(ReminderEntry.offset_minutes.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting pending reminders: {str(e)}")
            raise RepositoryException(f"Failed to get reminders: {str(e)}")

    def get_due_entry_ids(self, now: datetime, limit: int) -> List[str]:
        """Ids of pending entries due at ``now``, oldest send time first."""
        try:
            rows = (
                self.db.query(ReminderEntry.id)
                .filter(
                    ReminderEntry.status == ReminderStatus.PENDING.value,
                    ReminderEntry.scheduled_send_time <= now,
                )
                .order_by(ReminderEntry.scheduled_send_time, ReminderEntry.id)
                .limit(limit)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting due reminders: {str(e)}")
            raise RepositoryException(f"Failed to get due reminders: {str(e)}")

    def lock_entry(self, entry_id: str, status: ReminderStatus) -> Optional[ReminderEntry]:
        """
        Lock one entry if it is still in ``status``.

        Returns None when another worker holds the row or the entry has moved
        on to another status.
        """
        try:
            return cast(
                Optional[ReminderEntry],
                self.db.query(ReminderEntry)
                .filter(
                    ReminderEntry.id == entry_id,
                    ReminderEntry.status == status.value,
                )
                .with_for_update(skip_locked=True)
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking reminder {entry_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock reminder: {str(e)}")
