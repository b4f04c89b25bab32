"""
Structured Logging

The settlement engine itself is pure; the flows around it log what they
computed so a month close can be traced afterwards:
- which cycle was settled and with how many participants
- rounding adjustments applied during reconciliation
- validation problems that blocked a close

Logs are emitted through structlog on top of the standard library logger,
rendered as JSON lines.
"""

import logging
from typing import Optional

import structlog

from mealpool.config import get_settings


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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set the level of the package's stdlib logger.

    Without an explicit level, AppSettings decides: DEBUG when debug_mode
    is on, log_level otherwise. Runs once on import; call it again after
    changing the environment.
    """
    if level is None:
        app_settings = get_settings().app
        level = "DEBUG" if app_settings.debug_mode else app_settings.log_level
    logging.getLogger("mealpool").setLevel(level.upper())


configure_logging()


def get_logger(name: str = "mealpool") -> structlog.stdlib.BoundLogger:
    """Return a structured logger bound to `name`."""
    return structlog.get_logger(name)
