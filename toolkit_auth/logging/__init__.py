"""Structured logging for sign-in attempts."""
import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def with_context(**kwargs: Any) -> dict[str, Any]:
    """
    Build the ``extra`` mapping carrying contextual fields.

    Example:
        logger.info("Signed in", extra=with_context(auth_type="azure_cli"))
    """
    return {"extra_fields": kwargs}


def setup_structured_logging(log_level: str = "INFO") -> None:
    """
    Setup structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)

    # Package loggers created by get_logger() would otherwise print twice
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("toolkit_auth") and isinstance(candidate, logging.Logger):
            candidate.handlers.clear()


class LogContextManager:
    """Context manager for sign-in logging with trace ID."""

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        trace_id: Optional[str] = None,
        **fields: Any,
    ) -> None:
        """
        Initialize log context.

        Args:
            logger: Logger instance.
            operation: Name of the operation being traced.
            trace_id: Optional trace ID (UUID generated if not provided).
            **fields: Extra fields included in the summary line.
        """
        self.logger = logger
        self.operation = operation
        self.trace_id = trace_id or str(uuid.uuid4())
        self.fields = fields
        self.start_time = time.monotonic()

    def __enter__(self) -> "LogContextManager":
        """Enter context."""
        self.logger.debug(
            f"{self.operation} started",
            extra=with_context(trace_id=self.trace_id, **self.fields),
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and log summary."""
        duration = time.monotonic() - self.start_time

        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed with {exc_type.__name__}: {exc_val}",
                extra=with_context(
                    trace_id=self.trace_id,
                    duration_seconds=duration,
                    error=str(exc_val),
                    **self.fields,
                ),
            )
        else:
            self.logger.info(
                f"{self.operation} completed",
                extra=with_context(
                    trace_id=self.trace_id,
                    duration_seconds=duration,
                    **self.fields,
                ),
            )
