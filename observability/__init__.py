"""
Observability Module
====================

Metrics, tracing, and structured logging for the gateway service.
"""

from observability.metrics import setup_metrics, track_cache_clear, track_chat_metrics
from observability.tracing import setup_tracing
from observability.logging_config import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    "setup_metrics",
    "track_chat_metrics",
    "track_cache_clear",
    "setup_tracing",
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
