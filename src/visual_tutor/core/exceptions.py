"""
Visual Tutor Exception Hierarchy.

Defines all custom exceptions used across the visual tutor backend.
Only validation failures and total image-acquisition failures are meant
to reach clients; the rest are recovered locally by the pipeline.
"""

from typing import Any


class VisualTutorError(Exception):
    """
    Base exception for all visual tutor errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a VisualTutorError.

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


class ValidationError(VisualTutorError):
    """
    Raised when a request is missing required fields.

    Carries the offending field names so the client message can name them.
    """

    def __init__(
        self,
        message: str,
        *,
        fields: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if fields:
            details["fields"] = fields

        super().__init__(message, details=details)
        self.fields = fields or []


class ConfigurationError(VisualTutorError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - An unknown provider name is configured
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


class ProviderError(VisualTutorError):
    """
    A single image provider failed to produce an image.

    Raised for network errors, non-success HTTP statuses and responses
    missing the expected image field. The provider chain recovers from
    this by moving on to the next provider.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, details=details)
        self.provider = provider
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Provider answered with a retriable status (429, 502, 503, 504)."""


class AllProvidersFailedError(VisualTutorError):
    """
    Every configured image provider failed, or none were available.

    The message is identical whichever providers were configured; the
    individual failure reasons live in ``attempts`` and ``details``.
    """

    GENERIC_MESSAGE = "All image generation services failed or are unavailable."

    def __init__(self, attempts: list | None = None):
        self.attempts = list(attempts or [])
        details = {
            "attempts": [
                f"{attempt.provider_name}: {attempt.error}" for attempt in self.attempts
            ]
        }
        super().__init__(self.GENERIC_MESSAGE, details=details)


class LLMError(VisualTutorError):
    """
    Errors from text-generation provider interactions.

    Raised when:
    - API calls fail
    - Authentication fails
    - Rate limits are exceeded
    - Responses cannot be parsed
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        model: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, details=details)
        self.provider = provider
        self.model = model
        self.status_code = status_code


class LLMAuthenticationError(LLMError):
    """Raised when the API key is missing or rejected."""

    def __init__(
        self,
        message: str = "API authentication failed",
        *,
        provider: str | None = None,
    ):
        super().__init__(message, provider=provider, status_code=401)


class LLMRateLimitError(LLMError):
    """Raised when LLM API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        provider: str | None = None,
    ):
        super().__init__(message, provider=provider, status_code=429)


class LLMParseError(LLMError):
    """Raised when an LLM response does not have the expected shape."""

    def __init__(
        self,
        message: str = "Failed to parse LLM response",
        *,
        provider: str | None = None,
        response_preview: str | None = None,
    ):
        details = {}
        if response_preview:
            details["response_preview"] = response_preview[:200]
        super().__init__(message, provider=provider, details=details)


class StorageError(VisualTutorError):
    """
    Errors in the datastore or blob store.

    Raised by storage implementations; the persister turns these into
    outcome values instead of propagating them.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        operation: str | None = None,
        reference: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if backend:
            details["backend"] = backend
        if operation:
            details["operation"] = operation
        if reference:
            details["reference"] = reference

        super().__init__(message, details=details)
        self.backend = backend
        self.operation = operation
        self.reference = reference


class TutorResponseError(VisualTutorError):
    """Raised when a tutor answer cannot be produced."""


def format_exception(error: Exception) -> str:
    """
    Format an exception for log output.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, VisualTutorError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
