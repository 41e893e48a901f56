"""Structured logging setup built on structlog."""

import logging
import sys
from typing import Any

import structlog


def setup_logging(level: str = "INFO", format_type: str = "text") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        format_type: "json" for machine-readable output, "text" for console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    renderer: Any
    if format_type == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str, **context: Any) -> Any:
    """Get a structlog logger bound to the given context.

    Args:
        name: Logger name, usually ``__name__``
        **context: Key/value pairs attached to every event from this logger

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name, **context)
