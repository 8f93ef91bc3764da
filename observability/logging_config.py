"""
Structured Logging
==================

structlog on top of the stdlib ``logging`` tree, so gateway events and
library records (uvicorn, httpx, anthropic, duckdb) share one renderer and the
request context bound by the telemetry middleware.
"""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Event keys whose values never reach the output
SECRET_KEYS = frozenset(
    {"motherduck_token", "anthropic_api_key", "api_key", "token", "authorization"}
)

_EMBEDDED_TOKEN = re.compile(r"(motherduck_token=)[^&;\s'\"]+", re.IGNORECASE)

QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "anthropic": logging.WARNING,
}


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential keys and MotherDuck tokens embedded in connection strings."""
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS and value:
            event_dict[key] = "***"
        elif isinstance(value, str) and "motherduck_token" in value.lower():
            event_dict[key] = _EMBEDDED_TOKEN.sub(r"\1***", value)
    return event_dict


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure structlog and route stdlib logging through it.

    Args:
        level: Root log level name
        json_format: JSON lines (deployments) instead of the console renderer
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level.upper())

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind key-values to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
