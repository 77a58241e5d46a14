"""Structured logging setup for the portal core."""

import logging
from typing import Optional

import structlog

from portal.core.config import Settings, settings as default_settings


def add_mode_context(logger, method_name, event_dict):
    """Tag log lines emitted while a backend mode is bound."""
    mode = structlog.contextvars.get_contextvars().get("backend_mode")
    if mode and "backend_mode" not in event_dict:
        event_dict["backend_mode"] = mode
    return event_dict


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the structlog processor chain.

    Output goes through the standard library so that host applications keep
    control over handlers. ``LOG_FORMAT`` picks JSON or console rendering.
    """
    settings = settings or default_settings

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            add_mode_context,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
