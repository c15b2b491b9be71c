# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Caller identity is resolved upstream; the only credential this service
checks itself is the shared cron secret guarding the reminder sweep.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from ...core.config import settings
from ...core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """
    Require ``Authorization: Bearer <CRON_SECRET>``.

    An empty configured secret disables the endpoint entirely.
    """
    secret = settings.cron_secret.get_secret_value()
    scheme, _, token = (authorization or "").partition(" ")
    if not secret or scheme.lower() != "bearer" or not token:
        logger.warning("Rejected cron request without valid bearer credentials")
        raise UnauthorizedException("Unauthorized", code="UNAUTHORIZED").to_http_exception()
    if not hmac.compare_digest(token.strip().encode(), secret.encode()):
        logger.warning("Rejected cron request with invalid secret")
        raise UnauthorizedException("Unauthorized", code="UNAUTHORIZED").to_http_exception()
