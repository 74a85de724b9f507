"""Structured logging setup using structlog.

Log lines go to stderr; stdout is left to whatever renders the answer.
Every line emitted while a response streams carries its response and
conversation ids.
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Minimum level name, e.g. "DEBUG"
        json_logs: Render one JSON object per line instead of console output
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger."""
    return structlog.get_logger(name)


def bind_response_context(response_id: str, conversation_id: str | None = None) -> None:
    """Attach response identifiers to every log line of the current task."""
    structlog.contextvars.bind_contextvars(
        response_id=response_id,
        conversation_id=conversation_id,
    )


def clear_response_context() -> None:
    """Drop identifiers bound by bind_response_context."""
    structlog.contextvars.unbind_contextvars("response_id", "conversation_id")
