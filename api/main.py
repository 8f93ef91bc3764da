"""
FastAPI Application
===================

Main FastAPI application for the natural-language query gateway.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.chat import router as chat_router
from api.routes.health import router as health_router
from api.schemas import ErrorResponse
from nl_gateway.catalog import (
    ALLOWED_SCHEMAS,
    AUDITED_SOURCES,
    POLICY_TEXT,
    PROVENANCE_COLUMNS,
    TABLE_ALIASES,
)
from nl_gateway.composer import AnswerComposer
from nl_gateway.config import Settings
from nl_gateway.datasets import DATASETS
from nl_gateway.gateway import QueryGateway
from nl_gateway.llm.base import TimeLimitedLLM
from nl_gateway.llm.claude import AnthropicLLM
from nl_gateway.policy import PolicyEnforcer, ProvenancePolicy, RowLimitPolicy, TableAliasRewriter
from nl_gateway.schema import SchemaDescriber
from nl_gateway.warehouse import QueryExecutor, Warehouse
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing


def create_gateway(settings: Settings) -> QueryGateway:
    """Create and wire the gateway from settings."""
    warehouse = Warehouse(
        database=settings.motherduck_database,
        token=settings.motherduck_token,
        max_attempts=settings.warehouse_max_attempts,
        backoff=settings.warehouse_backoff_seconds,
    )
    rewriter = TableAliasRewriter(TABLE_ALIASES)
    limits = RowLimitPolicy(settings.default_limit, settings.max_limit)
    enforcer = PolicyEnforcer(
        rewriter,
        limits,
        ProvenancePolicy(AUDITED_SOURCES, PROVENANCE_COLUMNS),
        known_tables=list(DATASETS),
    )
    describer = SchemaDescriber(
        warehouse,
        ALLOWED_SCHEMAS,
        rewriter=rewriter,
        policy_text=POLICY_TEXT,
        ttl_seconds=settings.schema_cache_ttl_seconds,
    )

    # Without a key, questions are answered by DirectLookup and templated summaries
    llm = None
    if settings.anthropic_api_key:
        llm = TimeLimitedLLM(
            AnthropicLLM(
                api_key=settings.anthropic_api_key,
                default_model=settings.sql_model,
                timeout=settings.llm_timeout_seconds,
                max_retries=settings.llm_max_retries,
            ),
            timeout=settings.llm_timeout_seconds,
        )

    return QueryGateway(
        describer=describer,
        enforcer=enforcer,
        executor=QueryExecutor(warehouse, limits),
        composer=AnswerComposer(llm, model=settings.summary_model),
        llm=llm,
        sql_model=settings.sql_model,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    setup_logging(
        settings.log_level,
        json_format=settings.log_format == "json" or settings.environment == "production",
    )
    logger = get_logger(__name__)
    logger.info(
        "starting_gateway",
        version=__version__,
        port=settings.port,
        warehouse_credential=bool(settings.motherduck_token),
        llm_credential=bool(settings.anthropic_api_key),
    )

    app.state.gateway = create_gateway(settings)

    yield

    logger.info("shutting_down_gateway")
    gateway: QueryGateway = app.state.gateway
    await gateway.executor.warehouse.close()
    if gateway.llm is not None:
        await gateway.llm.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings()

    app = FastAPI(
        title="NL Query Gateway",
        description=(
            "Natural-language questions over the CNPJ warehouse. LLM-drafted SQL "
            "passes a safety filter and domain policies before it is executed."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.include_router(health_router)
    app.include_router(chat_router)

    setup_metrics(app, version=__version__, environment=settings.environment)
    app.add_route("/metrics", metrics_endpoint)
    setup_tracing(
        app,
        version=__version__,
        environment=settings.environment,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions without leaking internals."""
        get_logger(__name__).exception("unhandled_error")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="An unexpected error occurred",
                code="internal_error",
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=app.state.settings.port,
    )
