"""
Request Logging Middleware

Logs every API request with its duration and a correlation id, and flags
requests slower than SLOW_REQUEST_SECONDS.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from studyhub.core.config import settings
from studyhub.logging import get_logger

logger = get_logger("request")

SKIP_PATHS = ("/", "/health", "/docs", "/openapi.json")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Captures:
    - Request details (path, method, client ip)
    - Duration and status code
    - Request id, echoed back as X-Request-ID
    """

    def __init__(self, app: ASGIApp, enabled: bool = True, slow_threshold: float = None):
        super().__init__(app)
        self.enabled = enabled
        self.slow_threshold = slow_threshold if slow_threshold is not None else settings.SLOW_REQUEST_SECONDS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.url.path in SKIP_PATHS:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Unhandled error while processing request",
                method=request.method,
                path=request.url.path,
                request_id=request_id,
            )
            raise

        duration = time.perf_counter() - start_time
        logger.request(
            "API request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration=duration,
            request_id=request_id,
            ip=self._get_client_ip(request),
        )
        if duration >= self.slow_threshold:
            logger.slow(
                "Slow request",
                duration=duration,
                threshold=self.slow_threshold,
                method=request.method,
                path=request.url.path,
                request_id=request_id,
            )

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"
