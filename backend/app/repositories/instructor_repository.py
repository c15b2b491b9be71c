"""Read-only access to the instructor directory projection."""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.instructor import Instructor, InstructorCourse
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class InstructorRepository(BaseRepository[Instructor]):
    def __init__(self, db: Session):
        super().__init__(db, Instructor)
        self.logger = logging.getLogger(__name__)

    def get_active(self, instructor_id: str) -> Optional[Instructor]:
        try:
            return cast(
                Optional[Instructor],
                self.db.query(Instructor)
                .filter(Instructor.id == instructor_id, Instructor.is_active.is_(True))
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructor {instructor_id}: {str(e)}")
            raise RepositoryException(f"Failed to get instructor: {str(e)}")

    def get_qualified_for_course(self, course_id: str) -> List[Instructor]:
        """Active instructors qualified to teach a course, ordered by id."""
        try:
            return cast(
                List[Instructor],
                self.db.query(Instructor)
                .join(InstructorCourse, InstructorCourse.instructor_id == Instructor.id)
                .filter(
                    InstructorCourse.course_id == course_id,
                    Instructor.is_active.is_(True),
                )
                .order_by(Instructor.id)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting instructors for course {course_id}: {str(e)}")
            raise RepositoryException(f"Failed to get instructors: {str(e)}")
