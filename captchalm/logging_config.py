"""
Structured logging configuration using structlog.

JSON lines for log aggregation, colored console output for local use.
Answers, signatures, secrets and client addresses are never passed to the
logger; challenge ids are truncated to an 8-character prefix.
"""

import logging
import sys

import structlog

from captchalm.config import settings


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog and stdlib logging integration.

    Call this once at application startup. Arguments override the
    CAPTCHALM_LOG_LEVEL / CAPTCHALM_LOG_FORMAT settings.
    """
    level_value = getattr(logging, (level or settings.log_level).upper())

    if (log_format or settings.log_format) == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            # Request-scoped values such as the correlation id
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Sweep jobs and APScheduler log through stdlib logging
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level_value)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.INFO)


def get_logger(name: str | None = None):
    """Get a structlog logger, optionally bound to a logger name."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
