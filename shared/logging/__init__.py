"""Structured logging module using structlog."""

from .structured_logger import (
    app_context_processor,
    bind_context,
    clear_context,
    configure_logging,
)

__all__ = ["configure_logging", "app_context_processor", "bind_context", "clear_context"]
