"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for a natural-language question."""

    query: str = Field(
        default="",
        max_length=2000,
        description="Natural language question; blank returns a benign answer",
        examples=["Quantas empresas ativas existem em SP?"],
    )
    include_total: bool = Field(
        default=False,
        description="Also count all matching rows (ignoring the preview LIMIT)",
    )
    limit: int | None = Field(
        default=None,
        ge=1,
        description="Preview row limit; capped by the server maximum",
    )
    include_steps: bool = Field(
        default=False,
        description="Include the pipeline trail in the response",
    )


class DatasetMetaResponse(BaseModel):
    source: str
    description: str
    period: str
    url: str


class PipelineStepResponse(BaseModel):
    """Single pipeline trail entry."""

    timestamp: str = Field(..., description="ISO 8601 timestamp")
    step: str = Field(..., description="Step identifier")
    detail: dict[str, Any] = Field(default_factory=dict)


class ChatResponse(BaseModel):
    """Successful answer."""

    answer: str = Field(..., description="Natural-language summary")
    sql: str = Field(..., description="Statement that was executed")
    rows_preview: list[dict[str, Any]] = Field(default_factory=list)
    preview_count: int = Field(..., description="Rows in rows_preview")
    total_rows: int | None = Field(None, description="All matching rows, when requested and available")
    audit_sample: dict[str, Any] | None = Field(
        None, description="Provenance columns of one returned record"
    )
    audit_required: bool = Field(..., description="Whether an audited source was queried")
    dataset_meta: DatasetMetaResponse | None = None
    attempts: int = Field(..., description="SQL drafts used")
    duration_ms: float = Field(..., description="Processing time in milliseconds")
    steps: list[PipelineStepResponse] | None = Field(
        None, description="Pipeline trail (if requested)"
    )


class EmptyQueryResponse(BaseModel):
    answer: str
    duration_ms: float


class ErrorResponse(BaseModel):
    """Standard error response. Never carries stack traces or credentials."""

    error: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Stable error code")
    duration_ms: float | None = Field(None, description="Elapsed time in milliseconds")
    request_id: str | None = Field(None, description="Request ID if available")


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Collaborator configuration checks",
    )
    schema_cache: dict[str, Any] = Field(default_factory=dict)
    warehouse_ping: bool | None = Field(None, description="Live ping result, if requested")


class ClearCacheResponse(BaseModel):
    cleared: bool
    schema_cache: dict[str, Any] = Field(default_factory=dict)
