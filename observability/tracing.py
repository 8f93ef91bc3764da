"""
OpenTelemetry Tracing
=====================

The gateway opens its phase spans (schema, generate, execute, count,
summarize) through the OpenTelemetry API; this module installs the SDK
provider, the OTLP exporter and the FastAPI request spans around them.
"""

import structlog
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = structlog.get_logger(__name__)

EXPORT_DISABLED = "disabled"


def setup_tracing(
    app: FastAPI,
    version: str,
    environment: str = "development",
    otlp_endpoint: str = "localhost:4317",
    service_name: str = "nl-query-gateway",
) -> None:
    """
    Install the tracer provider and instrument the app.

    Args:
        app: FastAPI application instance
        version: Service version resource attribute
        environment: Deployment environment resource attribute
        otlp_endpoint: OTLP gRPC collector, or "disabled" to keep spans local
        service_name: Name of the service for traces
    """
    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: service_name,
                "service.version": version,
                "deployment.environment": environment,
            }
        )
    )

    if otlp_endpoint and otlp_endpoint != EXPORT_DISABLED:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        logger.info("tracing_export_enabled", endpoint=otlp_endpoint)
    else:
        logger.info("tracing_export_disabled")

    trace.set_tracer_provider(provider)
    # Health probes and scrapes are not worth a trace
    FastAPIInstrumentor.instrument_app(app, excluded_urls="live,metrics")
