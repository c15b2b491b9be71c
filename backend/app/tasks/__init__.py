# backend/app/tasks/__init__.py
"""
Celery tasks package.

Importing the package registers the reminder sweep with the Celery app.
"""

from app.tasks.celery_app import celery_app
from app.tasks.reminder_tasks import process_due_reminders

__all__ = ["celery_app", "process_due_reminders"]
