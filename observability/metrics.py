"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

# Custom registry so tests and multiple app instances don't collide globally
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "nl_gateway",
    "NL query gateway application information",
    registry=REGISTRY,
)

CHAT_REQUESTS_TOTAL = Counter(
    "nl_gateway_chat_requests_total",
    "Chat requests by outcome",
    ["outcome"],  # success, empty, error
    registry=REGISTRY,
)

CHAT_ERRORS_TOTAL = Counter(
    "nl_gateway_chat_errors_total",
    "Failed chat requests by error code",
    ["code"],
    registry=REGISTRY,
)

CHAT_DURATION = Histogram(
    "nl_gateway_chat_duration_seconds",
    "End-to-end chat pipeline duration in seconds",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0],
    registry=REGISTRY,
)

SQL_DRAFTS = Histogram(
    "nl_gateway_sql_drafts",
    "SQL drafts needed per successful request",
    buckets=[1, 2],
    registry=REGISTRY,
)

PREVIEW_ROWS = Histogram(
    "nl_gateway_preview_rows",
    "Rows returned per successful request",
    buckets=[0, 1, 5, 10, 50, 100, 500],
    registry=REGISTRY,
)

SCHEMA_CACHE_CLEARS = Counter(
    "nl_gateway_schema_cache_clears_total",
    "Explicit schema cache invalidations",
    registry=REGISTRY,
)

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

ACTIVE_CHATS = Gauge(
    "nl_gateway_active_chats",
    "Number of chat requests currently being processed",
    registry=REGISTRY,
)


def setup_metrics(app: FastAPI, version: str, environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Application version reported in the info metric
        environment: Deployment environment label
    """
    APP_INFO.info({"version": version, "environment": environment})

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_chat = request.url.path == "/chat"
        if is_chat:
            ACTIVE_CHATS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_chat:
                ACTIVE_CHATS.dec()


def track_chat_metrics(
    outcome: str,
    duration_seconds: float,
    drafts: int | None = None,
    rows: int | None = None,
    error_code: str | None = None,
) -> None:
    """
    Track metrics for a completed chat request.

    Args:
        outcome: success, empty or error
        duration_seconds: Total processing time
        drafts: SQL drafts used (successful requests)
        rows: Preview rows returned (successful requests)
        error_code: Gateway error code (failed requests)
    """
    CHAT_REQUESTS_TOTAL.labels(outcome=outcome).inc()
    CHAT_DURATION.observe(duration_seconds)

    if drafts is not None:
        SQL_DRAFTS.observe(drafts)
    if rows is not None:
        PREVIEW_ROWS.observe(rows)
    if error_code:
        CHAT_ERRORS_TOTAL.labels(code=error_code).inc()


def track_cache_clear() -> None:
    SCHEMA_CACHE_CLEARS.inc()


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        # Not in multiprocess mode
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )
