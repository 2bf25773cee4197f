"""Custom exception hierarchy for the content delivery pipeline.

The pipeline recovers from some failures and propagates others. The class a
failure belongs to decides which:

- ``ProviderError`` subclasses are recovered by one provider failover.
- ``GenerationError`` subclasses route the cycle to the static fallback.
- ``ConfigurationError`` subclasses are wiring bugs and fail the cycle.
- ``DeliveryError`` is the only runtime failure propagated to the scheduler.
"""

from __future__ import annotations

from typing import Optional


class BoardBotError(Exception):
    """Base exception for all pipeline errors."""


class ProviderError(BoardBotError):
    """An upstream generative-model call failed.

    Attributes:
        provider: Name of the provider that failed
        status_code: HTTP-like status code, when known
        original_error: Underlying client exception, when any
    """

    default_status_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.original_error = original_error


class RateLimitError(ProviderError):
    """Provider rejected the call because of rate limiting (429)."""

    default_status_code = 429


class AuthenticationError(ProviderError):
    """Provider rejected the credentials (401)."""

    default_status_code = 401


class InvalidRequestError(ProviderError):
    """Provider rejected the request as malformed (400)."""

    default_status_code = 400


class OverloadedError(ProviderError):
    """Provider is temporarily overloaded (503)."""

    default_status_code = 503


class ProviderTimeoutError(ProviderError):
    """Provider call exceeded its timeout (408)."""

    default_status_code = 408


class ProviderUnavailableError(ProviderError):
    """Provider circuit is open, so no call was made."""


# Failures that earn exactly one attempt against the alternate provider.
FAILOVER_ERRORS: tuple[type[ProviderError], ...] = (
    RateLimitError,
    AuthenticationError,
    InvalidRequestError,
    OverloadedError,
    ProviderTimeoutError,
)


class GenerationError(BoardBotError):
    """Content could not be produced by the selected source."""


class ToolAttemptsExhaustedError(GenerationError):
    """The model never submitted acceptable content within the attempt budget."""

    def __init__(self, attempts: int, last_errors: Optional[list[str]] = None) -> None:
        self.attempts = attempts
        self.last_errors = list(last_errors or [])
        detail = ", ".join(self.last_errors) if self.last_errors else "unknown"
        super().__init__(
            f"Max submission attempts exhausted ({attempts}). Last validation errors: {detail}"
        )


class FailoverExhaustedError(GenerationError):
    """Both the preferred and the alternate provider failed."""

    def __init__(self, message: str, errors: Optional[list[dict[str, str]]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class SourceConfigurationError(GenerationError):
    """A source was invoked without something it needs (model, event data)."""


class ContentValidationError(BoardBotError):
    """Content does not fit the display constraints.

    Attributes:
        invalid_chars: Unsupported characters found
        line_count: Line count after wrapping
        max_line_length: Longest line in cells
    """

    def __init__(
        self,
        message: str,
        invalid_chars: Optional[list[str]] = None,
        line_count: Optional[int] = None,
        max_line_length: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.invalid_chars = list(invalid_chars or [])
        self.line_count = line_count
        self.max_line_length = max_line_length


class ConfigurationError(BoardBotError):
    """Wiring problem that retrying cannot fix."""


class DuplicateSourceError(ConfigurationError):
    """A source id was registered twice."""


class UnknownSourceError(ConfigurationError):
    """An explicitly requested source id is not registered."""


class NoSourceAvailableError(ConfigurationError):
    """No registered source is eligible for selection."""


class MissingLayoutError(ConfigurationError):
    """Layout-mode content arrived without a usable grid."""


class DeliveryError(BoardBotError):
    """Sending the grid to the display failed."""
