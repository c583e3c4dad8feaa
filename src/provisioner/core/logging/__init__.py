"""Structured logging setup and request tracking."""

import logging

import structlog

from provisioner.config import settings
from provisioner.core.logging.middleware import RequestLoggingMiddleware


def configure_logging(level: str | None = None, cache: bool = True) -> None:
    """Configure structlog for the API, the worker and the CLI.

    Production renders JSON lines; every other environment gets the
    console renderer. Pass ``cache=False`` when stdout may be swapped
    between calls (the CLI), so loggers are not bound to a stale stream.
    """
    level_name = (level or settings.log_level).upper()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.is_production
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=cache,
    )


__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
]
