import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from fitplan.config.settings import get_settings


def configure_logging(level: int | None = None):
    """Configure structured logging with structlog.

    Stdlib loggers used by the pure modules write plain messages to the same
    stream; service-level events are rendered as JSON lines.
    """
    settings = get_settings()
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind context to every log entry emitted inside the block.

    Previous values are restored on exit.
    """
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
