"""
Health and Cache Routes
=======================

Health, liveness, and schema cache administration endpoints.
"""

from fastapi import APIRouter, Depends

from api import __version__
from api.routes.chat import get_gateway, get_settings
from api.schemas import ClearCacheResponse, HealthResponse, HealthStatus
from nl_gateway.config import Settings
from nl_gateway.gateway import QueryGateway
from observability.logging_config import get_logger
from observability.metrics import track_cache_clear

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Collaborator configuration and schema cache state",
)
async def health_check(
    ping: bool = False,
    gateway: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    Args:
        ping: Also run ``SELECT 1`` against the warehouse

    Returns:
        HealthResponse with current service status
    """
    checks = {
        "warehouse_credential": gateway.executor.warehouse.has_credentials,
        "llm_credential": bool(settings.anthropic_api_key),
    }

    warehouse_ping = None
    if ping:
        warehouse_ping = await gateway.executor.warehouse.ping()

    healthy = all(checks.values()) and warehouse_ping is not False
    return HealthResponse(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
        version=__version__,
        checks=checks,
        schema_cache=gateway.describer.cache.state(),
        warehouse_ping=warehouse_ping,
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Simple liveness probe",
)
async def liveness_check() -> dict:
    return {"status": "ok"}


@router.post(
    "/clear-cache",
    response_model=ClearCacheResponse,
    summary="Invalidate the schema cache",
)
async def clear_cache(gateway: QueryGateway = Depends(get_gateway)) -> ClearCacheResponse:
    gateway.clear_cache()
    track_cache_clear()
    logger.info("schema_cache_cleared_via_api")
    return ClearCacheResponse(cleared=True, schema_cache=gateway.describer.cache.state())
