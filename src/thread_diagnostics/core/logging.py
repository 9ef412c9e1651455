"""Structured logging configuration for the diagnostics facility.

These loggers carry the facility's own operational messages (expired
folder sweeps, sink failures, misbehaving observers). Per-thread
diagnostic lines never go through here; they are written to the sinks.

Internal messages come from whichever thread happened to log, so every
event is tagged with the emitting thread's name and id.

Example usage:
    from thread_diagnostics.core.logging import configure_logging, get_logger

    configure_logging(log_format="console", log_level="DEBUG")
    logger = get_logger(__name__)
    logger.info("Swept expired folders", removed=3)
"""

import logging
import sys
from typing import Literal, TextIO

import structlog
from structlog.processors import CallsiteParameter
from structlog.types import Processor

THREAD_PARAMETERS = {CallsiteParameter.THREAD_NAME, CallsiteParameter.THREAD}


def configure_logging(
    log_format: Literal["json", "console"] = "console",
    log_level: str = "WARNING",
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the facility.

    Can be called again to change format or level; the previous stdlib
    handler is replaced.

    Args:
        log_format: "json" for log aggregators, "console" for humans.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Destination, stderr by default since diagnostics echo
            owns stdout.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.CallsiteParameterAdder(THREAD_PARAMETERS),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [
            structlog.dev.ConsoleRenderer(
                colors=stream is None and sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=level,
        force=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        A bound logger instance with structured logging support.
    """
    return structlog.get_logger(name)
