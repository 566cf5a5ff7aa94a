"""
Structured logging configuration using structlog.

This module provides centralized logging configuration for the sentiment
runtime and its CLI. It supports both development (human-readable) and
production (JSON) formats.
"""

import logging
import sys
from typing import Any, Dict, Optional, TextIO

import structlog
from structlog.types import Processor

from adaptive_sentiment.core.config import SentimentSettings, get_sentiment_settings


def configure_logging(
    settings: Optional[SentimentSettings] = None, stream: Optional[TextIO] = None
) -> None:
    """
    Configure structured logging for the runtime.

    This function sets up:
    - Development: Human-readable logs with colors
    - Production: JSON structured logs for machine processing
    """
    settings = settings or get_sentiment_settings()
    is_development = settings.app_env.lower() in ("development", "dev", "local")

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]

    if is_development:
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=True),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def add_backend_context(backend: str, tier: Optional[str] = None) -> Dict[str, Any]:
    """Add inference backend context to logs."""
    context: Dict[str, Any] = {"backend": backend}
    if tier:
        context["tier"] = tier
    return context
