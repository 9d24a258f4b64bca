"""
Structured logging setup.

All modules log through structlog with keyword context; this module wires
structlog onto the standard library so levels and handlers stay in one place.
"""

import logging
import sys
from typing import Optional

import structlog


def configure_structured_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Configure structlog for the application"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings) -> None:
    """Apply LOG_LEVEL / LOG_FORMAT from a Settings instance."""
    configure_structured_logging(settings.LOG_LEVEL.value, settings.LOG_FORMAT)


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
