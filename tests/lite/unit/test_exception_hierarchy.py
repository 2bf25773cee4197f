"""Tests for the pipeline exception hierarchy."""

import pytest

from boardbot_lite.domain.exceptions import (
    FAILOVER_ERRORS,
    AuthenticationError,
    BoardBotError,
    ConfigurationError,
    ContentValidationError,
    DeliveryError,
    DuplicateSourceError,
    FailoverExhaustedError,
    GenerationError,
    InvalidRequestError,
    MissingLayoutError,
    NoSourceAvailableError,
    OverloadedError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitError,
    SourceConfigurationError,
    ToolAttemptsExhaustedError,
    UnknownSourceError,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestExceptionHierarchy:
    """The class of a failure decides whether the pipeline recovers from it."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            RateLimitError,
            AuthenticationError,
            InvalidRequestError,
            OverloadedError,
            ProviderTimeoutError,
            ProviderUnavailableError,
        ],
    )
    def test_provider_errors_share_base(self, exc_class: type) -> None:
        assert issubclass(exc_class, ProviderError)
        assert issubclass(exc_class, BoardBotError)

    @pytest.mark.parametrize(
        "exc_class",
        [DuplicateSourceError, UnknownSourceError, NoSourceAvailableError, MissingLayoutError],
    )
    def test_wiring_errors_are_configuration_errors(self, exc_class: type) -> None:
        assert issubclass(exc_class, ConfigurationError)
        assert not issubclass(exc_class, GenerationError)

    def test_generation_errors_route_to_fallback_family(self) -> None:
        for exc_class in (
            ToolAttemptsExhaustedError,
            FailoverExhaustedError,
            SourceConfigurationError,
        ):
            assert issubclass(exc_class, GenerationError)
        assert not issubclass(DeliveryError, GenerationError)
        assert not issubclass(ContentValidationError, ConfigurationError)

    def test_failover_errors_exclude_unavailable_provider(self) -> None:
        assert ProviderUnavailableError not in FAILOVER_ERRORS
        assert ProviderError not in FAILOVER_ERRORS
        assert RateLimitError in FAILOVER_ERRORS

    @pytest.mark.parametrize(
        ("exc_class", "status"),
        [
            (RateLimitError, 429),
            (AuthenticationError, 401),
            (InvalidRequestError, 400),
            (OverloadedError, 503),
            (ProviderTimeoutError, 408),
            (ProviderUnavailableError, None),
        ],
    )
    def test_provider_errors_carry_default_status(self, exc_class: type, status: int) -> None:
        exc = exc_class("boom", provider="openai")
        assert exc.status_code == status
        assert exc.provider == "openai"
        assert str(exc) == "boom"

    def test_provider_error_explicit_status_wins(self) -> None:
        original = RuntimeError("socket closed")
        exc = RateLimitError("slow", provider="x", status_code=420, original_error=original)
        assert exc.status_code == 420
        assert exc.original_error is original

    def test_tool_attempts_exhausted_message_lists_last_errors(self) -> None:
        exc = ToolAttemptsExhaustedError(3, ["too long", "bad char"])
        assert str(exc) == (
            "Max submission attempts exhausted (3). Last validation errors: too long, bad char"
        )
        assert ToolAttemptsExhaustedError(2).last_errors == []

    def test_content_validation_error_keeps_details(self) -> None:
        exc = ContentValidationError("bad", invalid_chars=["~"], line_count=7)
        assert exc.invalid_chars == ["~"]
        assert exc.line_count == 7
        assert exc.max_line_length is None
