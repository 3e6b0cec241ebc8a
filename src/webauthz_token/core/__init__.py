"""Core webauthz-token utilities.

This module exports configuration and logging helpers for use throughout
the package.
"""

from webauthz_token.core.config import Settings, get_settings, validate_separator
from webauthz_token.core.logging import (
    LoggingContext,
    PlainLoggerAdapter,
    as_keyword_logger,
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "validate_separator",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "PlainLoggerAdapter",
    "as_keyword_logger",
    "bind_correlation_id",
    "clear_context",
]
