"""
Chat Routes
===========

Main API endpoint: natural-language question in, summarised answer out.
"""

import asyncio
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.schemas import (
    ChatRequest,
    ChatResponse,
    DatasetMetaResponse,
    EmptyQueryResponse,
    ErrorResponse,
    PipelineStepResponse,
)
from nl_gateway.config import Settings
from nl_gateway.errors import EmptyQuery, GatewayError
from nl_gateway.gateway import QueryGateway
from observability.logging_config import get_logger
from observability.metrics import track_chat_metrics

logger = get_logger(__name__)

router = APIRouter(tags=["Chat"])


def get_gateway(request: Request) -> QueryGateway:
    """Dependency to get the configured gateway from app state."""
    return request.app.state.gateway


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _error(status_code: int, message: str, code: str, duration_ms: float, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            code=code,
            duration_ms=duration_ms,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(),
    )


@router.post(
    "/chat",
    response_model=ChatResponse | EmptyQueryResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Pipeline failure"},
        504: {"model": ErrorResponse, "description": "Request timed out"},
    },
    summary="Answer a natural-language question from the warehouse",
)
async def chat(
    body: ChatRequest,
    request: Request,
    gateway: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    """
    Answer a question.

    The endpoint:
    1. Drafts SQL for the question with the LLM
    2. Runs the safety filter and domain policies (one regeneration allowed)
    3. Executes the statement and, if asked, counts all matching rows
    4. Returns a short summary, the SQL and a preview of the rows
    """
    start_time = time.perf_counter()

    def elapsed_ms() -> float:
        return round((time.perf_counter() - start_time) * 1000, 1)

    try:
        result = await asyncio.wait_for(
            gateway.ask(body.query, include_total=body.include_total, limit=body.limit),
            timeout=settings.request_timeout_seconds,
        )
    except EmptyQuery as exc:
        track_chat_metrics("empty", elapsed_ms() / 1000)
        return EmptyQueryResponse(answer=exc.message, duration_ms=elapsed_ms())
    except asyncio.TimeoutError:
        duration_ms = elapsed_ms()
        logger.error("chat_timeout", timeout_seconds=settings.request_timeout_seconds)
        track_chat_metrics("error", duration_ms / 1000, error_code="timeout")
        return _error(504, "Request timed out", "timeout", duration_ms, request)
    except GatewayError as exc:
        duration_ms = elapsed_ms()
        logger.warning("chat_failed", code=exc.code, error=exc.message)
        track_chat_metrics("error", duration_ms / 1000, error_code=exc.code)
        return _error(500, exc.message, exc.code, duration_ms, request)

    duration_ms = elapsed_ms()
    track_chat_metrics(
        "success",
        duration_ms / 1000,
        drafts=result.attempts,
        rows=result.result.row_count,
    )
    logger.info(
        "chat_answered",
        rows=result.result.row_count,
        attempts=result.attempts,
        audit_required=result.audit_required,
        duration_ms=duration_ms,
    )

    steps = None
    if body.include_steps:
        steps = [
            PipelineStepResponse(timestamp=s.timestamp, step=s.step, detail=s.detail)
            for s in result.steps
        ]

    return ChatResponse(
        answer=result.answer,
        sql=result.sql,
        rows_preview=result.result.rows,
        preview_count=result.result.row_count,
        total_rows=result.total_rows,
        audit_sample=result.audit_sample,
        audit_required=result.audit_required,
        dataset_meta=(
            DatasetMetaResponse(**result.dataset_meta.as_dict())
            if result.dataset_meta
            else None
        ),
        attempts=result.attempts,
        duration_ms=duration_ms,
        steps=steps,
    )
