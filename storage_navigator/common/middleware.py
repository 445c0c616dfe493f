"""
FastAPI middleware for request tracking.

Every HTTP request becomes one navigation request id: it is taken from the
X-Request-ID header when the client sends one, attached to all log lines
written while the request is handled, and echoed back in the response.
"""

import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from storage_navigator.common.logging_config import (
    PerformanceTracker,
    clear_request_id,
    set_request_id,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Assigns request ids and logs method, path, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER) or None)

        logger.info(
            "Incoming request",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "client": request.client.host if request.client else None,
                }
            },
        )

        try:
            with PerformanceTracker(
                "http_request",
                logger,
                method=request.method,
                path=request.url.path,
            ) as tracker:
                response = await call_next(request)
        finally:
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra={
                "extra_fields": {
                    "status_code": response.status_code,
                    "duration_ms": tracker.duration_ms,
                    "request_id": request_id,
                }
            },
        )
        return response
