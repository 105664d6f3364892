"""
Request logging.

Every request gets a short request id bound into the structlog context, so
trade pipeline logs emitted while handling it carry the same id.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

QUIET_PATHS = ("/healthz",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            elif request.url.path in QUIET_PATHS:
                log = logger.debug
            else:
                log = logger.info
            log("http_request", method=request.method, status=status_code, duration_ms=duration_ms)
