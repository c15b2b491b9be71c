# backend/app/middleware/prometheus_middleware.py
"""
Prometheus metrics middleware for HTTP request tracking.

This middleware feeds request duration and status codes into the
prometheus_metrics module.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

_ULID_LENGTH = 26


def _normalize_path(raw_path: str) -> str:
    """Collapse ids to ``:id`` to keep label cardinality bounded."""
    return "/".join(
        ":id" if segment.isdigit() or len(segment) == _ULID_LENGTH else segment
        for segment in raw_path.split("/")
    )


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip the scrape endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)
        start_time = time.time()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            prometheus_metrics.record_http_request(
                method=method,
                endpoint=path,
                duration=time.time() - start_time,
                status_code=status_code,
            )
