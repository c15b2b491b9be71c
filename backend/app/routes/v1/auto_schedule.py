# backend/app/routes/v1/auto_schedule.py
"""
Auto-scheduling routes - API v1

Endpoints:
    POST / - Ranked lesson suggestions for a course
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_auto_scheduler
from ...core.exceptions import DomainException, handle_domain_exception
from ...schemas.auto_schedule import AutoScheduleRequest, AutoScheduleResponse
from ...services.auto_scheduler import AutoScheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auto-schedule-v1"])


@router.post("", response_model=AutoScheduleResponse)
async def suggest_lessons(
    request: AutoScheduleRequest,
    auto_scheduler: AutoScheduler = Depends(get_auto_scheduler),
) -> AutoScheduleResponse:
    try:
        return await asyncio.to_thread(auto_scheduler.suggest, request)
    except DomainException as e:
        handle_domain_exception(e)
