"""
Exception types and error handling helpers.

This module provides the configuration validation error, the error taxonomy
of the collection pipeline, and small helpers that log errors consistently
before optionally re-raising them.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    Validation errors are only raised at startup and are always fatal.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


# --- Collection pipeline errors ---
# Every error below aborts a single collection cycle. The scheduler logs it
# and waits for the next tick.


class ExporterError(Exception):
    """Base class for errors raised by one collection cycle."""


class SchemaError(ExporterError):
    """A required column is missing from the result table or appears twice."""

    def __init__(self, column: str, occurrences: int):
        if occurrences == 0:
            message = f"{column} field is not found"
        else:
            message = f"{column} field appears {occurrences} times"
        super().__init__(message)
        self.column = column
        self.occurrences = occurrences


class ColumnTypeError(ExporterError, TypeError):
    """A required column exists but holds the wrong element type."""

    def __init__(self, column: str, expected: str, actual: Any):
        super().__init__(f"{column} field is not {expected} (got {actual})")
        self.column = column
        self.expected = expected
        self.actual = actual


class FetchError(ExporterError):
    """The profiling backend could not be queried or returned no data."""


class EncodeError(ExporterError):
    """The write batch could not be serialized or compressed."""


class DeliveryError(ExporterError):
    """
    The remote-write endpoint rejected the batch or could not be reached.

    Attributes:
        status: HTTP status code, or None when no response was received
        body_prefix: Leading part of the response body (at most 1024 bytes)
    """

    def __init__(self, status: Optional[int], body_prefix: str = "",
                 message: Optional[str] = None):
        if message is None:
            message = f"server returned HTTP status {status}: {body_prefix}"
        super().__init__(message)
        self.status = status
        self.body_prefix = body_prefix


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a fatal CLI error and exit the process."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
