# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error types for generation calls.

Two families live here:

- Provider errors (LLMError and subclasses) are raised by LLMClient when a
  single provider call fails. Each subclass names the failure kind so the
  retry policy can classify it without inspecting message text.
- Service errors (AIServiceError and subclasses) are raised by the retry
  policy once it has decided a failure is final. They carry a stable code
  and a retryable flag for callers and transport layers.

Example:
    >>> try:
    ...     await with_error_handling(call, "title generation")
    ... except ContentFilterError as e:
    ...     print(e.code)
    CONTENT_FILTER
"""

from enum import Enum
from typing import Any, Optional


class LLMError(Exception):
    """Exception raised when an LLM operation fails.

    Attributes:
        message: Error description.
        model: Model that caused the error.
        error_code: Error code if available.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        error_code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        """Initialize LLMError.

        Args:
            message: Error description.
            model: Model that caused the error.
            error_code: Error code if available.
            original_error: Original exception if any.
        """
        self.message = message
        self.model = model
        self.error_code = error_code
        self.original_error = original_error
        super().__init__(self.message)


class ProviderRateLimitError(LLMError):
    """Provider rejected the call because of rate limits or quota.

    Attributes:
        retry_after: Seconds the provider asked us to wait, if it said.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        retry_after: Optional[float] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(
            message,
            model=model,
            error_code="rate_limit",
            original_error=original_error,
        )
        self.retry_after = retry_after


class ProviderContentFilterError(LLMError):
    """Provider refused to produce output for safety reasons."""


class ProviderModelNotFoundError(LLMError):
    """Requested model does not exist or is not served."""


class ProviderTransientError(LLMError):
    """Connection reset, timeout, or 5xx from the provider."""


class ProviderEmptyOutputError(LLMError):
    """Provider call succeeded but produced no usable output."""


class ProviderMalformedOutputError(LLMError):
    """Provider produced output that could not be parsed."""


class AIErrorCode(str, Enum):
    """Stable codes for final generation failures."""

    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    RATE_LIMIT = "RATE_LIMIT"
    CONTENT_FILTER = "CONTENT_FILTER"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    FALLBACK_FAILED = "FALLBACK_FAILED"
    UNKNOWN = "UNKNOWN"


class AIServiceError(Exception):
    """Final failure of a generation operation.

    Attributes:
        message: Error description.
        code: Stable error code.
        retryable: Whether retrying later could succeed.
        original_error: The underlying exception (or a dict of them).
    """

    code: AIErrorCode = AIErrorCode.UNKNOWN
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[AIErrorCode] = None,
        retryable: Optional[bool] = None,
        original_error: Any = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "error": self.message,
            "code": self.code.value,
            "retryable": self.retryable,
        }


class ModelUnavailableError(AIServiceError):
    """Model could not be found.

    Flagged retryable for callers that may switch models, but the retry
    policy itself does not retry it.
    """

    code = AIErrorCode.MODEL_UNAVAILABLE
    retryable = True


class RateLimitError(AIServiceError):
    """Provider quota was exhausted.

    The retry policy backs off on provider rate limits itself and raises
    UnknownAIError once retries run out, so this is for callers that
    surface quota failures directly.
    """

    code = AIErrorCode.RATE_LIMIT
    retryable = True


class ContentFilterError(AIServiceError):
    """Output was blocked by the provider's safety filter."""

    code = AIErrorCode.CONTENT_FILTER
    retryable = False


class InvalidResponseError(AIServiceError):
    """Output could not be parsed into the expected shape."""

    code = AIErrorCode.INVALID_RESPONSE
    retryable = False


class FallbackFailedError(AIServiceError):
    """Both the primary operation and its fallback failed.

    Attributes:
        primary_error: Last error of the primary operation.
        fallback_error: Error raised by the fallback.
    """

    code = AIErrorCode.FALLBACK_FAILED
    retryable = False

    def __init__(
        self,
        message: str,
        primary_error: BaseException,
        fallback_error: BaseException,
    ):
        super().__init__(
            message,
            original_error={"primary": primary_error, "fallback": fallback_error},
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class UnknownAIError(AIServiceError):
    """Unclassified failure, or retries exhausted without a fallback."""

    code = AIErrorCode.UNKNOWN
    retryable = False
