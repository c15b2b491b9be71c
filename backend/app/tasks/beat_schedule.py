# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration.

The reminder sweep runs on a fixed crontab; the interval comes from
``reminder_sweep_interval_minutes``.
"""

from typing import Any

from celery.schedules import crontab

from app.core.config import settings


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, staging, development, test)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    interval = max(1, settings.reminder_sweep_interval_minutes)
    return {
        "process-due-reminders": {
            "task": "app.tasks.reminder_tasks.process_due_reminders",
            "schedule": crontab(minute=f"*/{interval}"),
            "options": {
                "queue": "reminders",
                "priority": 5 if environment == "production" else 3,
                # A sweep that misses its slot is superseded by the next one
                "expires": interval * 60,
            },
        },
    }
