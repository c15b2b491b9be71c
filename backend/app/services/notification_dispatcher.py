# backend/app/services/notification_dispatcher.py
"""
Notification dispatcher seam used by the reminder sweep.

Delivery transports (email, SMS, push) live outside this service. The sweep
only needs ``send`` to return True on success; False or an exception counts
as a failed attempt and the reminder is retried on the next sweep. The
idempotency key is the reminder entry id, so a transport that deduplicates on
it never delivers one reminder twice.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Sequence

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    @abstractmethod
    def send(
        self,
        user_id: str,
        channel_set: Sequence[str],
        payload: Dict[str, Any],
        *,
        idempotency_key: str,
    ) -> bool:
        """Deliver one reminder; return True when accepted by the transport."""


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher: records the delivery in the log and reports success."""

    def send(
        self,
        user_id: str,
        channel_set: Sequence[str],
        payload: Dict[str, Any],
        *,
        idempotency_key: str,
    ) -> bool:
        logger.info(
            "Dispatching reminder %s to %s via %s",
            idempotency_key,
            user_id,
            ",".join(channel_set),
            extra={"template": payload.get("template"), "booking_id": payload.get("booking_id")},
        )
        return True


default_dispatcher: NotificationDispatcher = LoggingNotificationDispatcher()
