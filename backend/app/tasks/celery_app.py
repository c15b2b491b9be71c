# backend/app/tasks/celery_app.py
"""
Celery application configuration for the scheduling engine.

This module sets up the Celery app with Redis as the broker and backend,
configures task serialization, timezone, and the beat schedule.
"""

import logging
import os
from typing import Any, Dict, Type, cast

from celery import Celery, Task
from celery.signals import setup_logging

from app.core.config import settings

logger = logging.getLogger(__name__)


def _broker_url() -> str:
    # Priority: CELERY_BROKER_URL -> REDIS_URL -> settings.redis_url
    broker_url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL") or settings.redis_url
    # Ensure Redis URL includes database number
    if not any(broker_url.endswith(f"/{i}") for i in range(16)):
        broker_url = f"{broker_url}/0"
    return broker_url


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Returns:
        Celery: Configured Celery application instance
    """
    broker_url = _broker_url()
    result_backend = os.getenv("CELERY_RESULT_BACKEND") or broker_url

    celery_app = Celery(
        "driving_school_scheduler",
        broker=broker_url,
        backend=result_backend,
    )

    celery_app.conf.update(
        {
            # Task settings
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": settings.school_timezone,
            "enable_utc": True,
            # Worker settings
            "worker_prefetch_multiplier": 1,
            "worker_max_tasks_per_child": 1000,
            # Task execution settings
            "task_soft_time_limit": 240,
            "task_time_limit": 300,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            "task_default_retry_delay": 60,
            "worker_hijack_root_logger": False,
            "broker_transport_options": {
                "visibility_timeout": 3600,
                "polling_interval": 10.0,
            },
        }
    )

    # Force import of task modules so tasks are registered even if autodiscovery fails
    celery_app.conf.imports = ("app.tasks.reminder_tasks",)
    celery_app.conf.task_routes = {
        "app.tasks.reminder_tasks.*": {"queue": "reminders"},
    }

    from app.tasks.beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule(settings.environment)

    return celery_app


# Disable Celery's default logging configuration
@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Configure logging to integrate with the application's logging setup."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


celery_app = create_celery_app()


class BaseTask(Task):  # type: ignore[misc]
    """Base task that logs failures, retries and completions."""

    def on_failure(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.error(
            f"Task {self.name}[{task_id}] failed with exception: {exc}",
            exc_info=True,
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc: Exception, task_id: str, args: Any, kwargs: Any, einfo: Any) -> None:
        logger.warning(
            f"Task {self.name}[{task_id}] retry {self.request.retries} due to: {exc}",
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "retry_count": self.request.retries,
            },
        )
        super().on_retry(exc, task_id, args, kwargs, einfo)

    def on_success(self, retval: Any, task_id: str, args: Any, kwargs: Any) -> None:
        logger.info(
            f"Task {self.name}[{task_id}] completed successfully",
            extra={"task_id": task_id, "task_name": self.name},
        )
        super().on_success(retval, task_id, args, kwargs)


# Register BaseTask as default task base for the app
celery_app.Task = cast(Type[Task], BaseTask)


@celery_app.task(name="app.tasks.health_check")  # type: ignore[misc]
def health_check() -> Dict[str, str]:
    """Simple health check task to verify Celery is working."""
    from datetime import datetime, timezone

    current_task = celery_app.current_task
    return {
        "status": "healthy",
        "worker": current_task.request.hostname if current_task else "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
