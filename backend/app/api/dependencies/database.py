# backend/app/api/dependencies/database.py
"""
Database-related dependencies.

Services commit their own units of work; whatever a request leaves pending is
committed here, and an error anywhere in the request rolls it back.
"""

import logging
from typing import Generator

from sqlalchemy.orm import Session

from ...database import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed after the response is produced."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        logger.debug("Rolling back request session after error")
        db.rollback()
        raise
    finally:
        db.close()
