# backend/app/routes/v1/health.py
"""
Health check and metrics endpoints for monitoring and load balancer probes.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ...core.config import settings
from ...database import SessionLocal, get_db_pool_status
from ...monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(response: Response) -> dict:
    """Liveness plus a cheap database round trip."""
    database = "ok"
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(f"Health check database probe failed: {exc}")
        database = "unavailable"
        response.status_code = 503

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "service": "driving-school-scheduler",
        "environment": settings.environment,
        "database": database,
        "pool": get_db_pool_status(),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
