# backend/app/main.py
"""
Driving-school scheduling API.

Mounts the versioned routers under /api/v1, the unversioned health and
metrics endpoints, the unified error envelope and the Prometheus middleware.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from .core.config import is_running_tests, settings
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import (
    auto_schedule as auto_schedule_v1,
    availability as availability_v1,
    bookings as bookings_v1,
    cron as cron_v1,
    health as health_v1,
    schedule as schedule_v1,
)

API_TITLE = "Driving School Scheduler API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        f"{API_TITLE} starting (environment={settings.environment}, "
        f"timezone={settings.school_timezone})"
    )
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if not settings.cron_secret.get_secret_value():
        logger.warning("CRON_SECRET is not set: /api/v1/cron endpoints reject every request")

    yield

    logger.info(f"{API_TITLE} shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description="Lesson availability, booking, auto-scheduling and reminders for a driving school",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
register_error_handlers(app)

app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Mount v1 routes
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(schedule_v1.router, prefix="/schedule")
api_v1.include_router(auto_schedule_v1.router, prefix="/auto-schedule")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(cron_v1.router, prefix="/cron")

app.include_router(api_v1)
# Infrastructure routes (intentionally unversioned)
app.include_router(health_v1.router)


@app.get("/")
def root() -> dict:
    return {"message": API_TITLE, "version": API_VERSION, "docs": "/docs"}
