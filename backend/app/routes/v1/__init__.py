# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import auto_schedule, availability, bookings, cron, health, schedule

__all__ = [
    "auto_schedule",
    "availability",
    "bookings",
    "cron",
    "health",
    "schedule",
]
