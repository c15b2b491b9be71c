# backend/app/tasks/reminder_tasks.py
"""
Reminder dispatch tasks.

The beat schedule triggers ``process_due_reminders``; it runs the same sweep
as POST /api/v1/cron/process-reminders with its own session.
"""

import logging
from typing import Optional

from app.database import SessionLocal
from app.services.reminder_service import ReminderService, SweepSummary
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.reminder_tasks.process_due_reminders", max_retries=0)
def process_due_reminders(limit: Optional[int] = None) -> SweepSummary:
    """
    Dispatch every due pending reminder.

    Failed deliveries stay pending and are retried by the next run, so the task
    itself never retries.
    """
    db = SessionLocal()
    try:
        summary = ReminderService(db).sweep(limit=limit)
    finally:
        db.close()

    logger.info(
        f"Reminder sweep finished: processed={summary['processed']} sent={summary['sent']} "
        f"failed={summary['failed']} skipped={summary['skipped']}"
    )
    return summary
