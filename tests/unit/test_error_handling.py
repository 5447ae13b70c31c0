"""Unit tests for error categorization and CLI error reporting."""

import pytest
import requests

from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.utils.exceptions import (
    ConfigurationError,
    DispatchError,
    ErrorTier,
    ExtractionParseError,
    IncompleteIdentityError,
    InputValidationError,
    OracleError,
    ProviderloopError,
    TransportError,
    ValidationError,
    categorize_error,
    create_error_info,
)


class TestExceptionHierarchy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "exception_class",
        [ValidationError, InputValidationError, ConfigurationError, TransportError,
         OracleError, ExtractionParseError, IncompleteIdentityError, DispatchError],
    )
    def test_all_inherit_from_base(self, exception_class):
        assert issubclass(exception_class, ProviderloopError)

    def test_input_validation_is_validation_error(self):
        assert issubclass(InputValidationError, ValidationError)

    def test_dispatch_error_attributes(self):
        error = DispatchError("failed", response_text="raw body", status_code=502)

        assert str(error) == "failed"
        assert error.response_text == "raw body"
        assert error.status_code == 502


class TestCategorizeError:
    """Tests for categorize_error."""

    @pytest.mark.parametrize(
        "exception,tier",
        [
            (InputValidationError("too large"), ErrorTier.INPUT_VALIDATION),
            (ConfigurationError("no key"), ErrorTier.INPUT_VALIDATION),
            (ValidationError("bad date"), ErrorTier.INPUT_VALIDATION),
            (OracleError("overloaded"), ErrorTier.REMOTE),
            (DispatchError("500"), ErrorTier.REMOTE),
            (TransportError("unreachable"), ErrorTier.REMOTE),
            (requests.ConnectionError("refused"), ErrorTier.REMOTE),
            (ExtractionParseError("not JSON"), ErrorTier.PARSE),
            (IncompleteIdentityError("missing dob"), ErrorTier.PARSE),
            (RuntimeError("unexpected"), ErrorTier.REMOTE),
        ],
    )
    def test_tiers(self, exception, tier):
        assert categorize_error(exception) == tier


class TestCreateErrorInfo:
    """Tests for create_error_info."""

    def test_incomplete_identity_remediation_names_fields(self):
        error = IncompleteIdentityError("missing", missing_fields=["date_of_birth"])

        info = create_error_info(error)

        assert info.tier == ErrorTier.PARSE
        assert "date_of_birth" in info.remediation

    def test_dispatch_error_raw_response(self):
        info = create_error_info(DispatchError("failed", response_text="raw body"))

        assert info.raw_response == "raw body"
        assert info.error_type == "DispatchError"

    def test_timeout_remediation(self):
        info = create_error_info(requests.Timeout("read timed out"))

        assert "timed out" in info.remediation
        assert "dispatch log" in info.remediation

    def test_technical_details_from_cause(self):
        try:
            try:
                raise ValueError("bad json")
            except ValueError as cause:
                raise ExtractionParseError("could not parse") from cause
        except ExtractionParseError as e:
            info = create_error_info(e, source_id="Smith_John__01_15_1980")

        assert info.technical_details == "Caused by: ValueError: bad json"
        assert info.source_id == "Smith_John__01_15_1980"


class TestExitWithError:
    """Tests for exit_with_error."""

    def test_prints_tier_message_and_remediation(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error(InputValidationError("File too large: card.png"))

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Invalid input: File too large: card.png" in err
        assert "Check the selected file" in err

    def test_remote_error_label(self, capsys):
        with pytest.raises(SystemExit):
            exit_with_error(OracleError("model overloaded"))

        assert "Service error: model overloaded" in capsys.readouterr().err
