"""Structured logging configuration."""
import logging
import sys

import structlog

from billpay.config import Settings, settings as default_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structured logging with structlog."""
    settings = settings or default_settings

    # Determine log level
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Configure structlog processors
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # JSON for production, console for development
    if settings.app_env == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Cached loggers keep the processors they were first built with
        cache_logger_on_first_use=settings.app_env == "production",
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def bind_request_context(request_id: str, actor_id: str | None = None) -> None:
    """
    Bind correlation fields for every log entry of the current unit of work.

    Args:
        request_id: Correlation ID of the inbound request
        actor_id: Customer or agent performing the operation
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, actor_id=actor_id)
