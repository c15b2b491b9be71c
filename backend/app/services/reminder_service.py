# backend/app/services/reminder_service.py
"""
Reminder Service.

Keeps reminder entries in step with booking status transitions and runs the
sweep that dispatches due reminders.

Hooks (``on_booking_confirmed``, ``on_booking_cancelled``,
``on_booking_rescheduled``) only flush: they run inside the caller's booking
transaction so the booking change and its reminders commit together. The
sweep manages its own per-entry transactions.

Lesson times are wall-clock times in the school timezone; send times are
stored as naive UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
import time
from typing import Any, Dict, List, Optional, TypedDict, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.exceptions import DispatchFailure, RepositoryException
from ..models.booking import Booking
from ..models.reminder import ReminderEntry, ReminderStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.reminder_repository import ReminderRepository
from ..utils.time_utils import format_time, local_to_utc_naive
from .base import BaseService
from .notification_dispatcher import NotificationDispatcher, default_dispatcher

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = "lesson_reminder"


class SweepSummary(TypedDict):
    processed: int
    sent: int
    failed: int
    skipped: int


class ReminderService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        repository: Optional[ReminderRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.clock = clock or system_clock
        self.dispatcher = dispatcher or default_dispatcher
        self.repository = repository or RepositoryFactory.create_reminder_repository(db)

    # ------------------------------------------------------------------
    # Send-time math
    # ------------------------------------------------------------------

    @staticmethod
    def lesson_start_utc(booking: Booking) -> datetime:
        return local_to_utc_naive(booking.lesson_start(), settings.school_timezone)

    def send_time_for(self, booking: Booking, offset_minutes: int) -> datetime:
        return self.lesson_start_utc(booking) - timedelta(minutes=offset_minutes)

    @staticmethod
    def _template_data(booking: Booking, offset_minutes: int) -> Dict[str, Any]:
        return {
            "template": REMINDER_TEMPLATE,
            "booking_id": booking.id,
            "course_id": booking.course_id,
            "instructor_id": booking.instructor_id,
            "lesson_date": booking.booking_date.isoformat(),
            "start_time": format_time(booking.start_time),
            "end_time": format_time(booking.end_time),
            "offset_minutes": offset_minutes,
        }

    def _cancel(self, entry: ReminderEntry, now: datetime) -> None:
        entry.status = ReminderStatus.CANCELLED.value
        entry.cancelled_at = now

    # ------------------------------------------------------------------
    # Booking lifecycle hooks
    # ------------------------------------------------------------------

    def on_booking_confirmed(self, booking: Booking) -> List[ReminderEntry]:
        """
        Create one entry per configured offset.

        Offsets whose send time already passed are stored as cancelled.
        Offsets that already have an entry are left untouched, so calling this
        twice never duplicates reminders.
        """
        now = self.clock.now()
        existing = {e.offset_minutes for e in self.repository.get_for_booking(booking.id)}
        created: List[ReminderEntry] = []

        for offset in settings.reminder_offsets_minutes:
            if offset in existing:
                continue
            send_time = self.send_time_for(booking, offset)
            is_past = send_time < now
            entry = self.repository.create(
                booking_id=booking.id,
                recipient_id=booking.student_id,
                offset_minutes=offset,
                scheduled_send_time=send_time,
                channel_set=list(settings.reminder_channels),
                status=(ReminderStatus.CANCELLED if is_past else ReminderStatus.PENDING).value,
                template_data=self._template_data(booking, offset),
                attempts=0,
                cancelled_at=now if is_past else None,
            )
            created.append(entry)

        self.logger.info(f"Scheduled {len(created)} reminders for booking {booking.id}")
        return created

    def on_booking_cancelled(self, booking: Booking) -> int:
        """Cancel every pending entry of the booking; returns how many changed."""
        now = self.clock.now()
        pending = self.repository.get_pending_for_booking(booking.id)
        for entry in pending:
            self._cancel(entry, now)
        self.repository.flush()
        if pending:
            self.logger.info(f"Cancelled {len(pending)} reminders for booking {booking.id}")
        return len(pending)

    def on_booking_rescheduled(self, booking: Booking) -> List[ReminderEntry]:
        """
        Recompute pending send times from the booking's new start.

        Entries whose new send time has already passed are cancelled. Sent and
        cancelled entries are never revived.
        """
        now = self.clock.now()
        pending = self.repository.get_pending_for_booking(booking.id)
        for entry in pending:
            offset = cast(int, entry.offset_minutes)
            send_time = self.send_time_for(booking, offset)
            entry.scheduled_send_time = send_time
            entry.template_data = self._template_data(booking, offset)
            if send_time < now:
                self._cancel(entry, now)
        self.repository.flush()
        return pending

    def list_for_booking(self, booking_id: str) -> List[ReminderEntry]:
        return self.repository.get_for_booking(booking_id)

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def _dispatch(self, entry_id: str, delivery: Dict[str, Any]) -> None:
        started = time.monotonic()
        try:
            ok = self.dispatcher.send(
                delivery["recipient_id"],
                delivery["channel_set"],
                delivery["payload"],
                idempotency_key=entry_id,
            )
        except Exception as exc:
            raise DispatchFailure(entry_id, f"{type(exc).__name__}: {exc}") from exc
        finally:
            prometheus_metrics.observe_reminder_dispatch(time.monotonic() - started)
        if not ok:
            raise DispatchFailure(entry_id, "dispatcher reported failure")

    def _release_claim(self, entry_id: str, reason: str) -> None:
        """
        Put a claimed entry whose delivery failed back to pending.

        If this commit is lost the entry stays ``sent``: the reminder is dropped
        rather than delivered twice.
        """
        try:
            entry = self.repository.lock_entry(entry_id, ReminderStatus.SENT)
            if entry is not None:
                entry.status = ReminderStatus.PENDING.value
                entry.sent_at = None
                entry.last_error = reason[:1000]
            self.db.commit()
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            self.logger.error(f"Could not release reminder {entry_id} after failed delivery: {exc}")

    @BaseService.measure_operation("sweep_reminders")
    def sweep(self, limit: Optional[int] = None) -> SweepSummary:
        """
        Dispatch pending reminders that are due, oldest first.

        Each entry is claimed in its own transaction before delivery: lock the
        row (skipping rows another sweep holds), re-check it is still pending
        and due, mark it sent, commit. Only then is it dispatched, so a sweep
        that dies or fails to commit never sends the same entry twice. A failed
        delivery puts the entry back to pending with the error recorded, for
        the next sweep to retry.
        """
        now = self.clock.now()
        batch = settings.reminder_sweep_batch_size
        if limit is not None:
            batch = max(0, min(limit, batch))

        summary: SweepSummary = {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}
        entry_ids = self.repository.get_due_entry_ids(now, batch)
        self.db.commit()

        for entry_id in entry_ids:
            summary["processed"] += 1
            try:
                entry = self.repository.lock_entry(entry_id, ReminderStatus.PENDING)
                if entry is None or entry.scheduled_send_time > now:
                    self.db.rollback()
                    summary["skipped"] += 1
                    prometheus_metrics.record_reminder_outcome("skipped")
                    continue

                payload = dict(entry.template_data or {})
                payload["reminder_id"] = entry_id
                delivery: Dict[str, Any] = {
                    "recipient_id": entry.recipient_id,
                    "channel_set": list(entry.channel_set or []),
                    "payload": payload,
                }
                entry.status = ReminderStatus.SENT.value
                entry.sent_at = now
                entry.attempts = (entry.attempts or 0) + 1
                entry.last_error = None
                self.db.commit()
            except (SQLAlchemyError, RepositoryException) as exc:
                self.db.rollback()
                self.logger.error(f"Database error while claiming reminder {entry_id}: {exc}")
                summary["failed"] += 1
                prometheus_metrics.record_reminder_outcome("failed")
                continue

            try:
                self._dispatch(entry_id, delivery)
            except DispatchFailure as exc:
                self.logger.warning(str(exc))
                self._release_claim(entry_id, exc.reason)
                summary["failed"] += 1
                prometheus_metrics.record_reminder_outcome("failed")
                continue

            summary["sent"] += 1
            prometheus_metrics.record_reminder_outcome("sent")

        self.log_operation("sweep_reminders", **summary)
        return summary
