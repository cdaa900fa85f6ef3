"""Structured logging package."""

from money_manager.log.setup import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
