# backend/app/routes/v1/cron.py
"""
Scheduler-invoked endpoints.

Protected by a shared bearer secret (CRON_SECRET) rather than user auth.
The Celery beat task runs the same sweep; this endpoint exists for external
schedulers.
"""

import asyncio
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_reminder_service, verify_cron_secret
from ...schemas.booking import SweepResponse
from ...services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cron-v1"])


@router.post(
    "/process-reminders",
    response_model=SweepResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def process_reminders(
    reminder_service: ReminderService = Depends(get_reminder_service),
) -> SweepResponse:
    summary = await asyncio.to_thread(reminder_service.sweep)
    logger.info(
        f"Reminder sweep via cron: processed={summary['processed']} sent={summary['sent']} "
        f"failed={summary['failed']}"
    )
    return SweepResponse(**summary, timestamp=datetime.now(timezone.utc))
