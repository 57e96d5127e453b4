"""
Structured Logging Configuration
================================

JSON-structured logging with context propagation.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor

from sql_assistant.config import Settings


def setup_logging(settings: Optional[Settings] = None, json_format: Optional[bool] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        settings: Source of LOG_LEVEL / ENVIRONMENT (default: read from env)
        json_format: Whether to use JSON format (default: LOG_FORMAT=json or production)
    """
    settings = settings or Settings.from_env()
    log_level = settings.log_level.upper()

    # Use JSON in production, pretty print in development
    if json_format is None:
        json_format = settings.log_format == "json" or settings.environment == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route standard logging (uvicorn, google clients) through structlog
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> Any:
    """Get a structured logger (usually for ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind context variables (request_id, session_id) to subsequent log lines."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
