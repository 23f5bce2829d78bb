# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the retry policy.

Tests cover:
- Final error codes and retryability
- Error classification (typed and message-based)
- Retry-after extraction
- Backoff delays
- Attempt bounds, fail-fast kinds and fallback
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.intelligence.llm.errors import (
    AIErrorCode,
    ContentFilterError,
    FallbackFailedError,
    ModelUnavailableError,
    ProviderContentFilterError,
    ProviderEmptyOutputError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTransientError,
    RateLimitError,
    UnknownAIError,
)
from src.core.intelligence.llm.retry import (
    FailureKind,
    RetryPolicy,
    classify_error,
    get_retry_after_ms,
    with_error_handling,
)


class SleepRecorder:
    """Records requested sleeps instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    """Provide a sleep that records delays."""
    return SleepRecorder()


@pytest.fixture
def policy() -> RetryPolicy:
    """Provide the default policy."""
    return RetryPolicy()


@pytest.mark.unit
class TestAIServiceErrors:
    """Tests for the final error taxonomy."""

    @pytest.mark.parametrize(
        "error_class, code, retryable",
        [
            (ModelUnavailableError, AIErrorCode.MODEL_UNAVAILABLE, True),
            (RateLimitError, AIErrorCode.RATE_LIMIT, True),
            (ContentFilterError, AIErrorCode.CONTENT_FILTER, False),
            (UnknownAIError, AIErrorCode.UNKNOWN, False),
        ],
    )
    def test_codes(self, error_class, code: AIErrorCode, retryable: bool) -> None:
        error = error_class("failed")

        assert error.code is code
        assert error.retryable is retryable

    def test_rate_limit_to_dict(self) -> None:
        error = RateLimitError("Quota exhausted", original_error=ProviderRateLimitError("429"))

        assert error.to_dict() == {"error": "Quota exhausted", "code": "RATE_LIMIT", "retryable": True}
        assert isinstance(error.original_error, ProviderRateLimitError)


@pytest.mark.unit
class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ProviderRateLimitError("slow down"), FailureKind.RATE_LIMIT),
            (ProviderContentFilterError("blocked"), FailureKind.CONTENT_FILTER),
            (ProviderModelNotFoundError("missing"), FailureKind.MODEL_UNAVAILABLE),
            (ProviderEmptyOutputError("empty"), FailureKind.EMPTY_OUTPUT),
            (ProviderTransientError("reset"), FailureKind.TRANSIENT),
            (asyncio.TimeoutError(), FailureKind.TRANSIENT),
            (ConnectionError("refused"), FailureKind.TRANSIENT),
        ],
    )
    def test_typed_errors(self, error: Exception, kind: FailureKind) -> None:
        """Test that typed errors map to their kind."""
        assert classify_error(error) is kind

    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            ("HTTP 429 Too Many Requests", FailureKind.RATE_LIMIT),
            ("Resource exhausted: quota exceeded", FailureKind.RATE_LIMIT),
            ("Blocked by safety settings", FailureKind.CONTENT_FILTER),
            ("model gemini-9 not found", FailureKind.MODEL_UNAVAILABLE),
            ("No output generated", FailureKind.EMPTY_OUTPUT),
            ("ECONNRESET", FailureKind.TRANSIENT),
            ("Unexpected token < in JSON", FailureKind.TRANSIENT),
            ("invalid api key", FailureKind.OTHER),
        ],
    )
    def test_untyped_errors_by_message(self, message: str, kind: FailureKind) -> None:
        """Test message-based classification of plain exceptions."""
        assert classify_error(RuntimeError(message)) is kind


@pytest.mark.unit
class TestRetryAfter:
    """Tests for get_retry_after_ms."""

    def test_attribute(self) -> None:
        """Test the typed retry_after attribute."""
        error = ProviderRateLimitError("slow down", retry_after=7)

        assert get_retry_after_ms(error) == 7000

    def test_response_header(self) -> None:
        """Test a retry-after response header."""
        error = RuntimeError("429")
        error.response = MagicMock(headers={"retry-after": "2.5"})  # type: ignore[attr-defined]

        assert get_retry_after_ms(error) == 2500

    def test_message_phrase(self) -> None:
        """Test a retry phrase in the message."""
        assert get_retry_after_ms(RuntimeError("Please retry after 12 seconds")) == 12000

    def test_absent(self) -> None:
        """Test that no hint gives None."""
        assert get_retry_after_ms(RuntimeError("429")) is None


@pytest.mark.unit
class TestRetryPolicyDelays:
    """Tests for RetryPolicy delay computation."""

    def test_rate_limit_doubles_and_caps(self, policy: RetryPolicy) -> None:
        """Test the rate-limit sequence 10s, 20s, 40s, 80s, 120s."""
        delays = [policy.rate_limit_delay_ms(attempt) for attempt in range(5)]

        assert delays == [10_000, 20_000, 40_000, 80_000, 120_000]

    def test_rate_limit_prefers_provider_hint(self, policy: RetryPolicy) -> None:
        """Test that a provider retry-after overrides the exponential delay."""
        assert policy.rate_limit_delay_ms(3, retry_after_ms=5_000) == 5_000

    def test_transient_delay_grows_and_caps(self, policy: RetryPolicy) -> None:
        """Test transient backoff with and without jitter."""
        assert policy.transient_delay_ms(0) == 1_500
        assert policy.transient_delay_ms(1) == 2_250
        assert policy.transient_delay_ms(0, jitter=0.5) == 2_000
        assert policy.transient_delay_ms(20) == 15_000

    def test_empty_output_uses_larger_base(self, policy: RetryPolicy) -> None:
        """Test the empty-output base delay."""
        assert policy.transient_delay_ms(0, empty_output=True) == 3_000

    def test_from_settings(self, settings) -> None:
        """Test building the policy from settings."""
        policy = RetryPolicy.from_settings(settings.retry)

        assert policy.max_retries == settings.retry.max_retries
        assert policy.rate_limit_cap_ms == 120_000


@pytest.mark.unit
class TestWithErrorHandling:
    """Tests for with_error_handling."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that a successful call is returned without sleeping."""
        operation = AsyncMock(return_value="ok")

        result = await with_error_handling(operation, "test", policy=policy, sleep=sleep)

        assert result == "ok"
        assert operation.await_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limit_backoff_sequence(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that rate limits are retried with doubling delays."""
        operation = AsyncMock(side_effect=ProviderRateLimitError("429"))

        with pytest.raises(UnknownAIError):
            await with_error_handling(operation, "test", policy=policy, sleep=sleep)

        assert operation.await_count == policy.max_retries + 1
        assert sleep.delays == [10.0, 20.0, 40.0, 80.0]

    @pytest.mark.asyncio
    async def test_transient_then_success(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test recovery after a transient failure."""
        operation = AsyncMock(side_effect=[ProviderTransientError("reset"), "ok"])

        result = await with_error_handling(
            operation, "test", policy=policy, sleep=sleep, jitter=lambda: 0.0
        )

        assert result == "ok"
        assert sleep.delays == [1.5]

    @pytest.mark.asyncio
    async def test_max_retries_override(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that max_retries bounds the attempts."""
        operation = AsyncMock(side_effect=ProviderEmptyOutputError("No output generated"))

        with pytest.raises(UnknownAIError) as exc_info:
            await with_error_handling(operation, "test", max_retries=1, policy=policy, sleep=sleep)

        assert operation.await_count == 2
        assert isinstance(exc_info.value.original_error, ProviderEmptyOutputError)

    @pytest.mark.asyncio
    async def test_content_filter_fails_fast(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that filtered content is never retried."""
        operation = AsyncMock(side_effect=ProviderContentFilterError("blocked"))

        with pytest.raises(ContentFilterError) as exc_info:
            await with_error_handling(operation, "title generation", policy=policy, sleep=sleep)

        assert operation.await_count == 1
        assert exc_info.value.code.value == "CONTENT_FILTER"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_model_unavailable_fails_fast(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that a missing model is not retried."""
        operation = AsyncMock(side_effect=ProviderModelNotFoundError("no such model"))

        with pytest.raises(ModelUnavailableError) as exc_info:
            await with_error_handling(operation, "test", policy=policy, sleep=sleep)

        assert operation.await_count == 1
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_unclassified_error_is_not_retried(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that other failures stop immediately."""
        operation = AsyncMock(side_effect=RuntimeError("invalid api key"))

        with pytest.raises(UnknownAIError, match="invalid api key"):
            await with_error_handling(operation, "test", policy=policy, sleep=sleep)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_fallback_runs_once(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that the fallback result is returned after the primary fails."""
        operation = AsyncMock(side_effect=RuntimeError("boom"))
        fallback = AsyncMock(return_value="fallback")

        result = await with_error_handling(operation, "test", fallback=fallback, policy=policy, sleep=sleep)

        assert result == "fallback"
        assert fallback.await_count == 1

    @pytest.mark.asyncio
    async def test_fallback_failure(self, policy: RetryPolicy, sleep: SleepRecorder) -> None:
        """Test that both errors are kept when the fallback fails too."""
        primary = RuntimeError("primary")
        secondary = RuntimeError("secondary")

        with pytest.raises(FallbackFailedError) as exc_info:
            await with_error_handling(
                AsyncMock(side_effect=primary),
                "test",
                fallback=AsyncMock(side_effect=secondary),
                policy=policy,
                sleep=sleep,
            )

        assert exc_info.value.primary_error is primary
        assert exc_info.value.fallback_error is secondary

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, policy: RetryPolicy) -> None:
        """Test that cancellation during a backoff sleep is not swallowed."""

        async def cancelled_sleep(seconds: float) -> None:
            raise asyncio.CancelledError

        operation = AsyncMock(side_effect=ProviderTransientError("reset"))

        with pytest.raises(asyncio.CancelledError):
            await with_error_handling(operation, "test", policy=policy, sleep=cancelled_sleep)
