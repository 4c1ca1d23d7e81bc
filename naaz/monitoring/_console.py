"""
Structured console logging using structlog.

Colored console output in development, JSON lines otherwise.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

from naaz.monitoring._types import LogLevel, MonitoringConfig

_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def configure_logging(config: MonitoringConfig) -> None:
    """Route structlog and stdlib logging through one formatter on stderr."""
    level = _STDLIB_LEVELS[config.log_level]

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderers: list[Processor]
    if config.is_development and sys.stderr.isatty():
        # Dev mode: colored console
        renderers = [structlog.dev.ConsoleRenderer()]
    else:
        # JSON lines
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("naaz").setLevel(level)


def stdlib_level(level: LogLevel) -> int:
    return _STDLIB_LEVELS[level]


__all__ = ("configure_logging", "stdlib_level")
