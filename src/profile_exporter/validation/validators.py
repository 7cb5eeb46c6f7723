"""
Validation functions for configuration values.

Each validator returns the normalized value or raises ValidationError
naming the offending field.
"""

import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union
from urllib.parse import urlparse

from .exceptions import ValidationError

# Prometheus duration syntax, largest unit first: 1y2w3d4h5m6s7ms
_DURATION_RE = re.compile(
    r"^(?:(\d+)y)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$"
)
_DURATION_UNITS = (
    365 * 24 * 3600.0,
    7 * 24 * 3600.0,
    24 * 3600.0,
    3600.0,
    60.0,
    1.0,
    0.001,
)

# RFC 7230 token characters
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Headers owned by the remote-write protocol itself.
RESERVED_HEADERS = (
    "authorization",
    "host",
    "content-encoding",
    "content-length",
    "content-type",
    "user-agent",
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "www-authenticate",
    "x-prometheus-remote-write-version",
)


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within the given bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_duration(
    value: Any,
    field_name: str = "duration",
    allow_zero: bool = False
) -> float:
    """
    Parse a Prometheus-style duration ("30s", "1m30s", "500ms") into seconds.

    Bare numbers are accepted and interpreted as seconds.

    Args:
        value: Duration string or number of seconds
        field_name: Name of the field being validated
        allow_zero: Whether a zero duration is acceptable

    Returns:
        Duration in seconds

    Raises:
        ValidationError: If the value cannot be parsed or is out of range
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = validate_positive_float(value, field_name=field_name)
    elif isinstance(value, str):
        text = value.strip()
        if text == "0":
            seconds = 0.0
        else:
            match = _DURATION_RE.match(text)
            if not text or match is None:
                raise ValidationError(
                    f"{field_name} is not a valid duration: {value!r}",
                    field_name=field_name,
                    value=value
                )
            seconds = sum(
                int(part) * unit
                for part, unit in zip(match.groups(), _DURATION_UNITS)
                if part is not None
            )
    else:
        raise ValidationError(
            f"{field_name} must be a duration string like '30s', got {value!r}",
            field_name=field_name,
            value=value
        )

    if seconds == 0 and not allow_zero:
        raise ValidationError(
            f"{field_name} must be greater than zero",
            field_name=field_name,
            value=value
        )
    return seconds


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """
    Validate that a value is a string with at least one non-blank character.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_url(
    value: Any,
    field_name: str = "url",
    allowed_schemes: Optional[List[str]] = None
) -> str:
    """
    Validate an absolute URL.

    Args:
        value: URL to validate
        field_name: Name of the field being validated
        allowed_schemes: Accepted URL schemes (defaults to http and https)

    Returns:
        Validated URL string

    Raises:
        ValidationError: If the URL is malformed or uses another scheme
    """
    schemes = allowed_schemes or ["http", "https"]
    url = validate_non_empty_string(value, field_name=field_name)
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(
            f"{field_name} is not a valid URL: {e}",
            field_name=field_name,
            value=value
        )
    if parsed.scheme not in schemes:
        raise ValidationError(
            f"{field_name} must use one of the schemes {schemes}, got '{parsed.scheme}'",
            field_name=field_name,
            value=value
        )
    if not parsed.netloc:
        raise ValidationError(
            f"{field_name} must have a host",
            field_name=field_name,
            value=value
        )
    return url


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Raises:
        ValidationError: If path doesn't exist
    """
    path_str = str(path)
    if not os.path.exists(path_str):
        raise ValidationError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_header_name(name: Any, field_name: str = "header") -> str:
    """
    Validate an extra HTTP header name.

    Names must be valid HTTP tokens and must not collide with the headers
    set by the remote-write protocol.
    """
    if not isinstance(name, str) or not _HEADER_NAME_RE.match(name):
        raise ValidationError(
            f"{field_name} is not a valid HTTP header name: {name!r}",
            field_name=field_name,
            value=name
        )
    if name.lower() in RESERVED_HEADERS:
        raise ValidationError(
            f"{field_name} is a reserved header and cannot be overridden: {name}",
            field_name=field_name,
            value=name
        )
    return name


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: List of allowed choices
        field_name: Name of the field being validated
        case_sensitive: Whether the comparison should be case-sensitive

    Returns:
        Validated choice, spelled as in valid_choices

    Raises:
        ValidationError: If value is not in choices
    """
    str_value = str(value)

    if case_sensitive:
        if str_value not in valid_choices:
            raise ValidationError(
                f"{field_name} must be one of {valid_choices}, got {value}",
                field_name=field_name,
                value=value
            )
        return str_value

    lower_choices = [choice.lower() for choice in valid_choices]
    lower_value = str_value.lower()
    if lower_value not in lower_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got {value}",
            field_name=field_name,
            value=value
        )
    return valid_choices[lower_choices.index(lower_value)]
