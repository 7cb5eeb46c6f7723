"""
Validation and error handling for the profile_exporter package.

This module provides configuration validators, the collection pipeline's
error taxonomy, and consistent error reporting helpers.
"""

from .exceptions import (
    ColumnTypeError,
    DeliveryError,
    EncodeError,
    ErrorSeverity,
    ExporterError,
    FetchError,
    SchemaError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)

from .validators import (
    RESERVED_HEADERS,
    validate_duration,
    validate_enum_choice,
    validate_header_name,
    validate_non_empty_string,
    validate_path_exists,
    validate_positive_float,
    validate_url,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ValidationError",
    "ExporterError",
    "SchemaError",
    "ColumnTypeError",
    "FetchError",
    "EncodeError",
    "DeliveryError",
    "handle_error",
    "handle_config_error",
    "handle_cli_error",
    # Validators
    "RESERVED_HEADERS",
    "validate_duration",
    "validate_enum_choice",
    "validate_header_name",
    "validate_non_empty_string",
    "validate_path_exists",
    "validate_positive_float",
    "validate_url",
]
