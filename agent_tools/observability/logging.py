"""
Structured Logging Module

This module provides structured JSON logging with correlation ID support.

Pattern: Structured logging for observability
Pattern: Singleton configuration (configure once at startup)

Loggers returned by get_logger() are lazy proxies: every log call resolves the
current structlog configuration, so reconfiguring the level at startup also
applies to loggers created at import time.
"""

import contextvars
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor


_configured: bool = False


# =============================================================================
# Correlation ID Context
# =============================================================================

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current context.

    Args:
        correlation_id: Unique identifier for request tracing
    """
    _correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if unset."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(correlation_id: str) -> Generator[None, None, None]:
    """
    Context manager for setting correlation ID.

    Args:
        correlation_id: Unique identifier for request tracing

    Example:
        >>> with correlation_id_context("session-12345"):
        ...     logger.info("chat_started")
    """
    token = _correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id_var.reset(token)


# =============================================================================
# Custom Processors
# =============================================================================


def add_correlation_id(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add correlation ID to log event if set."""
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_timestamp(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def rename_level(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename log_level to level for cleaner output."""
    if "log_level" in event_dict:
        event_dict["level"] = event_dict.pop("log_level")
    return event_dict


# =============================================================================
# Singleton Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog for the application.

    This should be called once at application startup. Subsequent calls
    are no-ops unless force=True.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream (default: sys.stdout)
        force: Force reconfiguration

    Example:
        >>> configure_logging(level="DEBUG", force=True)
        >>> logger = get_logger(__name__)
    """
    global _configured

    if _configured and not force:
        return

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_correlation_id,
        rename_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """
    Reset logging configuration state.

    WARNING: This should only be used in tests.
    """
    global _configured
    _configured = False


# =============================================================================
# Logger Factory
# =============================================================================


def get_logger(name: str) -> Any:
    """
    Get a structured logger bound to ``name``.

    Configures logging with defaults on first use if the application has
    not done so yet.

    Args:
        name: Logger name (typically module name)

    Returns:
        A lazy structlog logger proxy

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("tool_executed", tool_name="search_knowledge", success=True)
    """
    configure_logging()
    return structlog.get_logger(logger_name=name)


def elapsed_ms(started_at: float) -> int:
    """Milliseconds elapsed since a ``time.perf_counter()`` reading."""
    return int((time.perf_counter() - started_at) * 1000)


def _level_to_int(level: str) -> int:
    """Convert level string to logging int."""
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level.upper(), logging.INFO)
