"""
Unit tests for the value validators and error helpers.
"""

import logging
from unittest.mock import Mock

import pytest

from profile_exporter.validation import (
    DeliveryError,
    ErrorSeverity,
    SchemaError,
    ValidationError,
    handle_cli_error,
    handle_error,
    validate_duration,
    validate_enum_choice,
    validate_header_name,
    validate_url,
)


@pytest.mark.unit
class TestValidateDuration:
    """Test cases for Prometheus-style duration parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("30s", 30.0),
        ("1m", 60.0),
        ("1m30s", 90.0),
        ("500ms", 0.5),
        ("2h", 7200.0),
        ("1d", 86400.0),
        ("1w", 604800.0),
        (15, 15.0),
        (2.5, 2.5),
    ])
    def test_valid_durations(self, value, expected):
        assert validate_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "abc", "10", "1s1m", "-5s", True, None, [1]])
    def test_invalid_durations(self, value):
        with pytest.raises(ValidationError):
            validate_duration(value, field_name="queries[0].duration")

    def test_zero_rejected_by_default(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_duration("0s", field_name="queries[0].duration")

        assert "greater than zero" in str(exc_info.value)

    def test_zero_allowed(self):
        assert validate_duration("0", allow_zero=True) == 0.0


@pytest.mark.unit
class TestValidateUrl:
    def test_valid_url(self):
        assert validate_url("https://example.com/api/v1/write") == "https://example.com/api/v1/write"

    @pytest.mark.parametrize("value", ["example.com", "http://", "file:///tmp/x", 42])
    def test_invalid_url(self, value):
        with pytest.raises(ValidationError):
            validate_url(value)

    def test_allowed_schemes(self):
        assert validate_url("socks5://proxy:1080", allowed_schemes=["socks5"]) == "socks5://proxy:1080"


@pytest.mark.unit
class TestValidateHeaderName:
    def test_valid_header(self):
        assert validate_header_name("X-Scope-OrgID") == "X-Scope-OrgID"

    @pytest.mark.parametrize("name", ["Bad Header", "", "x:y"])
    def test_invalid_header(self, name):
        with pytest.raises(ValidationError):
            validate_header_name(name)

    def test_reserved_header_is_case_insensitive(self):
        with pytest.raises(ValidationError):
            validate_header_name("USER-AGENT")


@pytest.mark.unit
class TestValidateEnumChoice:
    def test_case_insensitive_returns_canonical_spelling(self):
        result = validate_enum_choice("azurechina", ["AzurePublic", "AzureChina"], case_sensitive=False)

        assert result == "AzureChina"

    def test_invalid_choice(self):
        with pytest.raises(ValidationError):
            validate_enum_choice("Mars", ["AzurePublic"])


@pytest.mark.unit
class TestErrors:
    """Test cases for the collection error types and handlers."""

    def test_schema_error_messages(self):
        assert str(SchemaError("flat", 0)) == "flat field is not found"
        assert str(SchemaError("flat", 3)) == "flat field appears 3 times"

    def test_delivery_error_message(self):
        error = DeliveryError(503, "overloaded")

        assert str(error) == "server returned HTTP status 503: overloaded"
        assert error.status == 503

    def test_handle_error_reraises(self):
        logger = Mock(spec=logging.Logger)

        with pytest.raises(ValueError):
            handle_error(ValueError("boom"), "testing", logger=logger)

        logger.error.assert_called_once()
        assert "Error in testing: boom" in logger.error.call_args.args[0]

    def test_handle_error_severity(self):
        logger = Mock(spec=logging.Logger)

        handle_error(ValueError("boom"), "testing", severity=ErrorSeverity.WARNING,
                     reraise=False, logger=logger)

        logger.warning.assert_called_once()

    def test_handle_cli_error_exits(self):
        logger = Mock(spec=logging.Logger)

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ValueError("boom"), "startup", exit_code=3, logger=logger)

        assert exc_info.value.code == 3
