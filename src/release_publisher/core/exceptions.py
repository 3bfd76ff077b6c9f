"""
Release Publisher Exception Hierarchy.

Defines the exceptions raised by configuration and by response interpreters.
Network failures are not raised to callers; they are reported as outcomes.
"""

from typing import Any


class ReleasePublisherError(Exception):
    """
    Base exception for all Release Publisher errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a ReleasePublisherError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ReleasePublisherError):
    """
    Errors in client configuration.

    Raised for invalid timeout values, malformed repository names
    and unreadable configuration sources.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            config_key: Configuration key that is invalid
            config_file: Configuration file involved
            details: Optional structured data for debugging
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        if config_file:
            details["config_file"] = config_file

        super().__init__(message, details=details)
        self.config_key = config_key
        self.config_file = config_file


class TrustStoreError(ConfigurationError):
    """Raised when trusted certificate material cannot be loaded."""

    def __init__(self, message: str, *, source: str | None = None):
        super().__init__(message, config_file=source)
        self.source = source


class ResponseShapeError(ReleasePublisherError, ValueError):
    """
    Raised when a response body is well-formed but not shaped as expected.

    Subclasses ValueError so that it is classified alongside JSON syntax
    errors and pydantic validation errors as a response handling failure.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if field:
            details["field"] = field

        super().__init__(message, details=details)
        self.field = field


class AttemptTimeoutError(ReleasePublisherError, TimeoutError):
    """
    Base for timeouts enforced around a whole request attempt.

    Carries the request URI and the configured duration that elapsed.
    """

    phase = "attempt"

    def __init__(self, uri: str, timeout: float):
        """
        Initialize an AttemptTimeoutError.

        Args:
            uri: URI of the request that timed out
            timeout: Configured duration in seconds
        """
        super().__init__(
            f"{self.phase} timeout of {timeout}s elapsed",
            details={"uri": uri},
        )
        self.uri = uri
        self.timeout = timeout


class FirstByteTimeoutError(AttemptTimeoutError):
    """No response arrived within the first byte timeout after the request was sent."""

    phase = "first byte"


class EndToEndTimeoutError(AttemptTimeoutError):
    """The exchange did not finish within the end-to-end timeout."""

    phase = "end-to-end"
