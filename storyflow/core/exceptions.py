"""
Custom Exceptions
=================

Every error raised by Storyflow derives from StoryflowError and carries a
machine-readable code, a details mapping and a recoverable flag.

Generation failures are classified into three kinds so callers can decide
what to show the user:

- TransportError: the service could not be reached (retryable)
- ServerRejectedError: the service answered with an error body (message shown verbatim)
- MalformedResponseError: the service answered 2xx but without the expected fields
"""

from typing import Optional, Dict, Any


GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


class StoryflowError(Exception):
    """Base exception for all Storyflow errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.recoverable = recoverable

    @property
    def user_message(self) -> str:
        """Message safe to show to the user."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


class ConfigurationError(StoryflowError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(message, details=details, **kwargs)


class ValidationError(StoryflowError):
    """Input validation errors, raised before any network round trip."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]
        if constraint:
            details["constraint"] = constraint
        super().__init__(message, details=details, **kwargs)


class GenerationError(StoryflowError):
    """Base class for failures of a single generation call."""

    def __init__(
        self,
        message: str,
        capability: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if capability:
            details["capability"] = capability
        self.capability = capability
        super().__init__(message, details=details, **kwargs)

    @property
    def user_message(self) -> str:
        return GENERIC_FAILURE_MESSAGE


class TransportError(GenerationError):
    """The service could not be reached (no connectivity, timeout)."""

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, recoverable=True, details=details, **kwargs)


class ServerRejectedError(GenerationError):
    """The service answered with a non-success status and an error body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if status_code:
            details["status_code"] = status_code
        if response_body:
            # First 500 characters only
            details["response_body"] = response_body[:500]
        self.status_code = status_code

        recoverable = kwargs.pop("recoverable", status_code in (429, 500, 502, 503, 504) if status_code else False)
        super().__init__(message, recoverable=recoverable, details=details, **kwargs)

    @property
    def user_message(self) -> str:
        return self.message


class MalformedResponseError(GenerationError):
    """The service answered 2xx but the body lacks required fields."""

    def __init__(
        self,
        message: str,
        missing_field: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_field:
            details["missing_field"] = missing_field
        super().__init__(message, details=details, **kwargs)


class QuotaExceededError(StoryflowError):
    """The per-artifact generation cap has been reached."""

    def __init__(
        self,
        message: str,
        key: Optional[Any] = None,
        limit: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if key is not None:
            details["key"] = key
        if limit is not None:
            details["limit"] = limit
        super().__init__(message, details=details, **kwargs)


class RequestInProgressError(StoryflowError):
    """A request for the same artifact is already in flight."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        super().__init__(message, recoverable=True, details=details, **kwargs)


class AudioStateError(StoryflowError):
    """An audio operation was requested from a state that does not allow it."""

    def __init__(
        self,
        message: str,
        state: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if state:
            details["state"] = state
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)


class SecurityError(StoryflowError):
    """Security-related errors (path traversal, unsafe URLs, etc.)."""

    def __init__(
        self,
        message: str,
        attempted_path: Optional[str] = None,
        security_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if attempted_path:
            # Paths stay out of serialized errors
            details["attempted_path"] = "***REDACTED***"
        if security_type:
            details["security_type"] = security_type
        super().__init__(message, recoverable=False, details=details, **kwargs)
