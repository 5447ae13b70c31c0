"""Custom exception classes for Providerloop Chains.

All exceptions inherit from ProviderloopError to allow catching all custom exceptions.

Failures fall into three tiers, none of which is fatal to the process:
    - INPUT_VALIDATION: bad upload or missing required input, caught before any
      network call
    - REMOTE: non-2xx or unreachable OCR, transcription or automation endpoints
    - PARSE: oracle output that cannot be parsed, or identity fields that could
      not be found in a transcript
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests


class ProviderloopError(Exception):
    """Base exception for all Providerloop Chains custom exceptions."""

    pass


class ValidationError(ProviderloopError):
    """Raised when data validation fails.

    Examples:
        - Date of birth that is not a real calendar date
        - Malformed Source ID
        - Roster CSV missing required columns
    """

    pass


class InputValidationError(ValidationError):
    """Raised when a user-supplied input is rejected before any network call.

    Examples:
        - Wrong file type for an upload
        - File larger than the configured limit
        - Empty chain name
    """

    pass


class ConfigurationError(ProviderloopError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Missing API key environment variable
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class TransportError(ProviderloopError):
    """Raised when network/transport issues occur.

    Examples:
        - Connection timeout
        - Network unreachable
    """

    pass


class OracleError(ProviderloopError):
    """Raised when an OCR or transcription service call fails.

    The message carries the remote error text verbatim so it can be shown
    to the user as-is.
    """

    pass


class ExtractionParseError(ProviderloopError):
    """Raised when oracle output cannot be parsed at all.

    Examples:
        - Response body is not JSON
        - Top-level JSON value is not an object
    """

    pass


class IncompleteIdentityError(ProviderloopError):
    """Raised when a workflow needs a Source ID but identity fields are missing.

    Attributes:
        missing_fields: Names of the identity fields that were not found
    """

    def __init__(self, message: str, missing_fields: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


class DispatchError(ProviderloopError):
    """Raised when an automation chain trigger fails.

    Attributes:
        response_text: Raw response text returned by the automation endpoint
        status_code: HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        response_text: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.response_text = response_text
        self.status_code = status_code


class ErrorTier(Enum):
    """Error tier used to decide how a failure is surfaced.

    Attributes:
        INPUT_VALIDATION: Rejected before any network call; user fixes input
        REMOTE: Remote service failed; message shown verbatim, user may retry
        PARSE: Output could not be interpreted; user re-uploads or enters data

    Example:
        >>> tier = categorize_error(InputValidationError("File too large"))
        >>> tier == ErrorTier.INPUT_VALIDATION
        True
    """

    INPUT_VALIDATION = "INPUT_VALIDATION"
    REMOTE = "REMOTE"
    PARSE = "PARSE"


@dataclass
class ErrorInfo:
    """Structured error information for user-facing reporting.

    Attributes:
        tier: Error tier (INPUT_VALIDATION, REMOTE, PARSE)
        error_type: Exception class name (e.g., "OracleError")
        message: User-facing error message
        remediation: Actionable guidance for resolving the error
        technical_details: Optional technical details for debugging
        source_id: Optional Source ID if the error occurred for a known patient
        raw_response: Optional raw response content from a remote service
    """

    tier: ErrorTier
    error_type: str
    message: str
    remediation: str
    technical_details: Optional[str] = None
    source_id: Optional[str] = None
    raw_response: Optional[str] = None


def categorize_error(exception: Exception) -> ErrorTier:
    """Categorize exception into one of the three error tiers.

    Args:
        exception: The exception to categorize

    Returns:
        ErrorTier for the exception

    Example:
        >>> categorize_error(OracleError("model overloaded"))
        <ErrorTier.REMOTE: 'REMOTE'>
        >>> categorize_error(ExtractionParseError("not JSON"))
        <ErrorTier.PARSE: 'PARSE'>
    """
    if isinstance(exception, (InputValidationError, ConfigurationError)):
        return ErrorTier.INPUT_VALIDATION

    if isinstance(exception, (ExtractionParseError, IncompleteIdentityError)):
        return ErrorTier.PARSE

    if isinstance(
        exception,
        (OracleError, TransportError, DispatchError, requests.RequestException),
    ):
        return ErrorTier.REMOTE

    if isinstance(exception, ValidationError):
        return ErrorTier.INPUT_VALIDATION

    # Unknown errors are reported like remote failures: show message, allow retry
    return ErrorTier.REMOTE


def create_error_info(
    exception: Exception,
    source_id: Optional[str] = None,
    raw_response: Optional[str] = None
) -> ErrorInfo:
    """Create structured error information from exception.

    Args:
        exception: Exception that occurred
        source_id: Optional Source ID of the patient being processed
        raw_response: Optional raw response from a remote service

    Returns:
        ErrorInfo with tier and remediation guidance
    """
    tier = categorize_error(exception)

    if raw_response is None and isinstance(exception, DispatchError):
        raw_response = exception.response_text

    technical_details = None
    if exception.__cause__ is not None:
        technical_details = (
            f"Caused by: {type(exception.__cause__).__name__}: {exception.__cause__}"
        )

    return ErrorInfo(
        tier=tier,
        error_type=type(exception).__name__,
        message=str(exception),
        remediation=_generate_remediation(exception, tier),
        technical_details=technical_details,
        source_id=source_id,
        raw_response=raw_response,
    )


def _generate_remediation(exception: Exception, tier: ErrorTier) -> str:
    """Generate actionable remediation message for an error.

    Args:
        exception: Exception that occurred
        tier: Error tier

    Returns:
        Actionable remediation message
    """
    if isinstance(exception, ConfigurationError):
        return (
            "Configuration error. Check config/config.json and PROVIDERLOOP_* "
            "environment variables for missing or invalid values."
        )

    if isinstance(exception, IncompleteIdentityError):
        missing = ", ".join(exception.missing_fields) or "identity fields"
        return (
            f"Could not determine {missing}. Make sure the patient's full name and "
            "date of birth are mentioned or visible, or enter them manually."
        )

    if tier == ErrorTier.INPUT_VALIDATION:
        return "Check the selected file or form values and try again."

    if tier == ErrorTier.PARSE:
        return (
            "The service returned data that could not be read. Re-upload a clearer "
            "image or recording and try again."
        )

    if isinstance(exception, requests.Timeout):
        return (
            "Request timed out. The chain may still have started; check the "
            "dispatch log before retrying."
        )

    return (
        "The remote service reported an error. Review the message above and retry "
        "the action. Retries reuse the same idempotency key where available."
    )
