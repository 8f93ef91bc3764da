"""
Telemetry Middleware
====================

Correlates every log line of a request under one request ID and emits an
access event with status and latency.
"""

import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from observability.logging_config import bind_context, clear_context, get_logger

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

# Probes and scrapes would drown the access log
QUIET_PATHS = frozenset({"/live", "/metrics"})

logger = get_logger(__name__)


class TelemetryMiddleware(BaseHTTPMiddleware):
    """
    Adds:
    - X-Request-ID (the caller's, or a fresh one) to the response
    - X-Response-Time-Ms to the response
    - request_id, method and path to the structlog context
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        clear_context()
        bind_context(request_id=request_id, method=request.method, path=request.url.path)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.2f}"

        if request.url.path not in QUIET_PATHS:
            logger.info("http_request", status=response.status_code, duration_ms=round(elapsed_ms, 1))
        return response
