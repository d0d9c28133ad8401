"""Logging configuration for logstash-docket.

This module provides structured logging setup for the whole tool.
All modules should use `get_logger(__name__)` to get their logger.

Documentation runs fan out over a worker pool, so contextual fields
(the repository or plugin being processed) are stored per thread and
attached to records by a filter on the handler, rather than by swapping
the process-wide record factory.

Usage:
    from docket.logging import setup_logging, get_logger, LogContext

    # At application startup
    setup_logging()

    # In each module
    logger = get_logger(__name__)

    # Inside a worker
    with LogContext(repository="logstash-input-beats"):
        logger.info("Fetching documentation")
        # ... | repository=logstash-input-beats
"""

import logging
import sys
import threading
from typing import Any

from docket.constants import LOG_DATE_FORMAT, LOG_FORMAT

# Attributes present on every LogRecord; anything else was passed via `extra`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_context = threading.local()


class StructuredFormatter(logging.Formatter):
    """A formatter that appends `extra` fields as `key=value` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with structured fields.

        Args:
            record: The log record to format.

        Returns:
            Formatted log string.
        """
        base_message = super().format(record)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not extra_fields:
            return base_message

        fields_str = " | ".join(f"{k}={v}" for k, v in extra_fields.items())
        return f"{base_message} | {fields_str}"


class ContextFilter(logging.Filter):
    """Copies the current thread's LogContext fields onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in getattr(_context, "fields", {}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logging(
    level: int = logging.INFO,
    *,
    include_timestamp: bool = True,
) -> None:
    """Configure logging for the application.

    Installs a single stderr handler with the structured formatter and the
    context filter. Should be called once at startup.

    Args:
        level: The logging level (default: INFO).
        include_timestamp: Whether to include timestamps in output.
    """
    if include_timestamp:
        formatter = StructuredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    else:
        formatter = StructuredFormatter("%(levelname)-8s | %(name)s | %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    logging.getLogger("docket").setLevel(level)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module.

    Args:
        name: The module name (typically __name__).

    Returns:
        A Logger instance.
    """
    return logging.getLogger(name)


class LogContext:
    """Context manager adding structured fields to this thread's log records.

    Contexts nest; inner fields shadow outer ones until the inner block exits.
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._previous: dict[str, Any] | None = None

    def __enter__(self) -> "LogContext":
        self._previous = getattr(_context, "fields", {})
        _context.fields = {**self._previous, **self.fields}
        return self

    def __exit__(self, *args: Any) -> None:
        _context.fields = self._previous or {}


def current_context() -> dict[str, Any]:
    """Return a copy of the fields active on the calling thread."""
    return dict(getattr(_context, "fields", {}))
