"""
Structured Logging

DESIGN DECISION: Every mutation and every persistence attempt is logged
as a structured event. Persistence failures are recovered, never raised
to the user, so the log is the only place they become visible.

The logger:
- Is configured once, on first import
- Emits JSON lines through the standard library handlers
- Takes its level from AppSettings (debug mode forces DEBUG)
"""

import logging
import sys
from typing import Optional

import structlog

from money_manager.config import get_settings


_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Minimum level name. Defaults to the configured app level.
    """
    global _configured

    if level is None:
        level = get_settings().app.effective_log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    logging.getLogger().setLevel(level)

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
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring logging on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
