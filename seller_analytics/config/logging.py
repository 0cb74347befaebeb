"""
Logging Configuration for the Seller Analytics Engine

structlog routed through stdlib logging. Records carry whatever query
context is bound with ``log_context``, so the per-store fan-out of one
dashboard query can be followed across tasks.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from seller_analytics.config.settings import get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
        log_format: Override LOG_FORMAT ("json" or "text")
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    fmt = (log_format or settings.monitoring.log_format).lower()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = JSONRenderer() if fmt == "json" else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.get_logger(__name__).debug(
        "Logging configured",
        level=level,
        format=fmt,
        environment=settings.app_env,
    )


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` to every record logged inside the block, tasks included"""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)
