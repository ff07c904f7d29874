"""Structured logging configuration using structlog.

Logs go to stderr so that stdout stays reserved for operation results
(the CLI prints JSON or formatted text there).

- JSON output for machine consumption
- Human-readable console output for development
- Loggers can carry bound context (book, chapter) into pipeline stages
"""

import logging
import sys
from typing import Any, TextIO

import structlog


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, render each event as one JSON line
        stream: Output stream (default: sys.stderr)

    Example:
        >>> configure_logging(level="DEBUG", json_output=False)
        >>> logger = get_logger(__name__)
        >>> logger.info("extraction_started", book="Climbing_Anchors", chapter="ch03.pdf")
    """
    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, optionally pre-bound with context.

    Args:
        name: Logger name (typically __name__ of the module)
        **context: Key/value pairs attached to every event

    Returns:
        Configured structlog logger

    Example:
        >>> logger = get_logger(__name__, book="Climbing_Anchors")
        >>> logger.info("chunk_created", chunk_id=3, char_count=1024)
    """
    logger = structlog.get_logger(name)
    if context:
        return logger.bind(**context)
    return logger
