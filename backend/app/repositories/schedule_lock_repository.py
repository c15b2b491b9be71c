"""
Schedule lock repository.

``acquire`` makes sure the (instructor, date) lock row exists, then selects it
FOR UPDATE. Every booking or availability write for that instructor-day goes
through it, so check-then-insert sequences run one at a time.
"""

from datetime import date
import logging
from typing import Iterable, List

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.schedule_lock import ScheduleLock
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleLockRepository(BaseRepository[ScheduleLock]):
    def __init__(self, db: Session):
        super().__init__(db, ScheduleLock)
        self.logger = logging.getLogger(__name__)

    def acquire(self, instructor_id: str, lock_date: date) -> ScheduleLock:
        try:
            insert_fn = sqlite_insert if self.dialect_name == "sqlite" else pg_insert
            stmt = (
                insert_fn(ScheduleLock)
                .values(instructor_id=instructor_id, lock_date=lock_date)
                .on_conflict_do_nothing(index_elements=["instructor_id", "lock_date"])
            )
            self.db.execute(stmt)
            lock = (
                self.db.query(ScheduleLock)
                .filter(
                    ScheduleLock.instructor_id == instructor_id,
                    ScheduleLock.lock_date == lock_date,
                )
                .with_for_update()
                .one()
            )
            self.logger.debug(f"Acquired schedule lock {instructor_id} {lock_date}")
            return lock
        except SQLAlchemyError as e:
            self.logger.error(f"Error acquiring schedule lock: {str(e)}")
            raise RepositoryException(f"Failed to acquire schedule lock: {str(e)}")

    def acquire_many(self, instructor_id: str, dates: Iterable[date]) -> List[ScheduleLock]:
        """Lock several days in ascending date order so two writers never deadlock."""
        return [self.acquire(instructor_id, d) for d in sorted(set(dates))]
