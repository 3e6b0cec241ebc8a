"""Structured logging for the token service.

Configures structlog for JSON output (or coloured console output in
development) and provides helpers for binding per-request context such as
correlation IDs.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from webauthz_token.core.config import get_settings

# Event keys whose values must never reach a log sink verbatim
SECRET_KEYS = frozenset({"secret", "token_secret", "bearer_token", "token_buffer"})


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a correlation ID to the entry if the context did not bind one."""
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = f"cid_{uuid.uuid4().hex[:12]}"
    return event_dict


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry, falling back to the package name."""
    event_dict["logger"] = logger.name if hasattr(logger, "name") else "webauthz_token"
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace values of secret-bearing keys with a fixed marker.

    Callers are expected to log tokens through ``mask_token``; this processor
    catches the cases where a raw value slips through anyway.

    Args:
        logger: Logger instance (unused).
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Event dictionary with secret values redacted.
    """
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "[REDACTED]"
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' field to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Log to stderr so CLI output on stdout stays machine readable; resolved
    # per logger so redirected streams are picked up
    return structlog.PrintLogger(sys.stderr)


def configure_logging(settings: Any | None = None) -> None:
    """Configure structured logging.

    Sets up structlog with JSON formatting by default and console
    formatting when running in development or when ``log_format`` is
    ``console``.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        redact_secrets,
    ]

    if settings.is_development or settings.log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )
        cache_logger = False
    else:
        shared_processors.append(rename_message_field)
        renderer = structlog.processors.JSONRenderer()
        cache_logger = True

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=cache_logger,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'webauthz_token'.

    Returns:
        BoundLogger: Configured structured logger instance.
    """
    return structlog.get_logger(name or "webauthz_token")


class PlainLoggerAdapter:
    """Give a message-string logger the keyword interface structlog uses.

    Each call renders ``event key=value ...`` into one string, so a
    :class:`logging.Logger` or any object with ``trace``/``info``/``warn``/
    ``error`` methods can be injected where a structlog logger is expected.
    """

    def __init__(self, logger: Any) -> None:
        self.logger = logger
        self._debug = _pick_method(logger, "trace", "debug")
        self._info = _pick_method(logger, "info")
        self._warning = _pick_method(logger, "warning", "warn")
        self._error = _pick_method(logger, "error")

    @staticmethod
    def render(event: str, **kw: Any) -> str:
        for key in SECRET_KEYS.intersection(kw):
            kw[key] = "[REDACTED]"
        fields = " ".join(f"{key}={value}" for key, value in kw.items())
        return f"{event} {fields}" if fields else event

    def debug(self, event: str, **kw: Any) -> None:
        self._debug(self.render(event, **kw))

    def info(self, event: str, **kw: Any) -> None:
        self._info(self.render(event, **kw))

    def warning(self, event: str, **kw: Any) -> None:
        self._warning(self.render(event, **kw))

    def error(self, event: str, **kw: Any) -> None:
        self._error(self.render(event, **kw))


def _pick_method(logger: Any, *names: str) -> Any:
    for name in names:
        method = getattr(logger, name, None)
        if callable(method):
            return method
    raise TypeError(f"Logger {logger!r} has no {' or '.join(names)} method")


def as_keyword_logger(logger: Any | None = None, name: str | None = None) -> Any:
    """Return a logger accepting ``logger.info(event, **fields)`` calls.

    Args:
        logger: Injected logger. structlog loggers are returned as is,
            anything else is wrapped in :class:`PlainLoggerAdapter`.
        name: Logger name used when ``logger`` is None.

    Returns:
        A logger with debug/info/warning/error keyword methods.
    """
    if logger is None:
        return get_logger(name)
    if hasattr(logger, "bind"):
        return logger
    return PlainLoggerAdapter(logger)


class LoggingContext:
    """Context manager for adding logging context.

    Example:
        with LoggingContext(correlation_id="abc123", client_id="c1"):
            logger.info("Checking token")  # Includes correlation_id and client_id
    """

    def __init__(self, **kwargs: str) -> None:
        self.context = kwargs
        self.token: Any = None

    def __enter__(self) -> "LoggingContext":
        self.token = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            structlog.contextvars.reset_contextvars(**self.token)


def bind_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current logging context.

    Args:
        correlation_id: The correlation ID to bind to the context.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Clear all context variables from the current logging context."""
    structlog.contextvars.clear_contextvars()
