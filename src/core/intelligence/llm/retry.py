# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Retry, backoff and error classification for generation calls.

Every model call in the research engine goes through with_error_handling().
Failures are classified into a small set of kinds, each with its own policy:

- rate limit: wait (provider retry-after, else exponential from 10s) and retry
- content filter: fail immediately with ContentFilterError
- model unavailable: fail immediately with ModelUnavailableError
- empty output / transient: wait with jittered backoff and retry
- anything else, or retries exhausted: run the fallback once if given,
  otherwise raise UnknownAIError

Example:
    >>> from src.core.intelligence.llm.retry import with_error_handling
    >>> response = await with_error_handling(
    ...     lambda: client.complete_with_tools(messages, tools),
    ...     "research step",
    ... )
"""

import asyncio
import json
import logging
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import aiohttp
from pydantic import ValidationError

from src.core.config.settings import RetrySettings, get_settings
from src.core.intelligence.llm.errors import (
    ContentFilterError,
    FallbackFailedError,
    ModelUnavailableError,
    ProviderContentFilterError,
    ProviderEmptyOutputError,
    ProviderMalformedOutputError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTransientError,
    UnknownAIError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRY_AFTER_PATTERN = re.compile(r"retry\s*(?:after\s*)?(\d+)\s*(?:seconds?|s)", re.IGNORECASE)

_RATE_LIMIT_MARKERS = ("429", "rate limit", "quota", "too many requests")
_CONTENT_FILTER_MARKERS = ("content-filter", "content_filter", "safety")
_EMPTY_OUTPUT_MARKERS = ("no output generated",)
_TRANSIENT_MARKERS = (
    "econnreset",
    "etimedout",
    "unexpected token",
    "json",
    "parse",
    "503",
    "500",
)


class FailureKind(str, Enum):
    """How a failed generation call should be handled."""

    RATE_LIMIT = "rate_limit"
    CONTENT_FILTER = "content_filter"
    MODEL_UNAVAILABLE = "model_unavailable"
    EMPTY_OUTPUT = "empty_output"
    TRANSIENT = "transient"
    OTHER = "other"


def classify_error(error: BaseException) -> FailureKind:
    """Classify a failure raised by a generation operation.

    Typed provider errors are matched first. Only exceptions that carry no
    type information fall back to message inspection.

    Args:
        error: The raised exception.

    Returns:
        The failure kind.
    """
    match error:
        case ProviderRateLimitError():
            return FailureKind.RATE_LIMIT
        case ProviderContentFilterError():
            return FailureKind.CONTENT_FILTER
        case ProviderModelNotFoundError():
            return FailureKind.MODEL_UNAVAILABLE
        case ProviderEmptyOutputError():
            return FailureKind.EMPTY_OUTPUT
        case ProviderTransientError() | ProviderMalformedOutputError():
            return FailureKind.TRANSIENT
        case json.JSONDecodeError() | ValidationError():
            return FailureKind.TRANSIENT
        case asyncio.TimeoutError() | ConnectionError() | aiohttp.ClientConnectionError():
            return FailureKind.TRANSIENT

    return _classify_message(str(error))


def _classify_message(message: str) -> FailureKind:
    """Classify an untyped failure by its message text."""
    text = message.lower()

    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return FailureKind.RATE_LIMIT
    if any(marker in text for marker in _CONTENT_FILTER_MARKERS):
        return FailureKind.CONTENT_FILTER
    if "model" in text and "not found" in text:
        return FailureKind.MODEL_UNAVAILABLE
    if any(marker in text for marker in _EMPTY_OUTPUT_MARKERS):
        return FailureKind.EMPTY_OUTPUT
    if any(marker in text for marker in _TRANSIENT_MARKERS):
        return FailureKind.TRANSIENT
    return FailureKind.OTHER


def get_retry_after_ms(error: BaseException) -> Optional[int]:
    """Extract the provider's requested wait from a rate-limit error.

    Looks at a retry_after attribute, then a retry-after response header,
    then a "retry after N seconds" phrase in the message.

    Args:
        error: The rate-limit exception.

    Returns:
        Delay in milliseconds, or None if the provider did not say.
    """
    retry_after: Any = getattr(error, "retry_after", None)
    if retry_after is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            retry_after = headers.get("retry-after")

    if retry_after is not None:
        try:
            return int(float(retry_after) * 1000)
        except (TypeError, ValueError):
            logger.debug("Ignoring unparseable retry-after value: %r", retry_after)

    match = _RETRY_AFTER_PATTERN.search(str(error))
    if match:
        return int(match.group(1)) * 1000
    return None


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters, in milliseconds.

    Attributes:
        max_retries: Retries after the first attempt.
        rate_limit_base_ms: First rate-limit delay.
        rate_limit_cap_ms: Maximum rate-limit delay.
        transient_base_ms: First transient-failure delay.
        empty_output_base_ms: First delay after an empty response.
        transient_cap_ms: Maximum transient-failure delay.
        jitter_ms: Maximum jitter added to transient delays.
    """

    max_retries: int = 4
    rate_limit_base_ms: int = 10_000
    rate_limit_cap_ms: int = 120_000
    transient_base_ms: int = 1_500
    empty_output_base_ms: int = 3_000
    transient_cap_ms: int = 15_000
    jitter_ms: int = 1_000

    @classmethod
    def from_settings(cls, settings: Optional[RetrySettings] = None) -> "RetryPolicy":
        """Build a policy from retry settings.

        Args:
            settings: Retry settings. Uses get_settings() if None.

        Returns:
            RetryPolicy instance.
        """
        settings = settings or get_settings().retry
        return cls(
            max_retries=settings.max_retries,
            rate_limit_base_ms=settings.rate_limit_base_ms,
            rate_limit_cap_ms=settings.rate_limit_cap_ms,
            transient_base_ms=settings.transient_base_ms,
            empty_output_base_ms=settings.empty_output_base_ms,
            transient_cap_ms=settings.transient_cap_ms,
            jitter_ms=settings.jitter_ms,
        )

    def rate_limit_delay_ms(self, attempt: int, retry_after_ms: Optional[int] = None) -> float:
        """Delay before retrying a rate-limited attempt."""
        if retry_after_ms is not None:
            return retry_after_ms
        return min(self.rate_limit_base_ms * 2**attempt, self.rate_limit_cap_ms)

    def transient_delay_ms(
        self,
        attempt: int,
        empty_output: bool = False,
        jitter: float = 0.0,
    ) -> float:
        """Delay before retrying a transient failure.

        Args:
            attempt: Zero-based attempt that just failed.
            empty_output: Whether the failure was an empty response.
            jitter: Random factor in [0, 1).

        Returns:
            Delay in milliseconds.
        """
        base = self.empty_output_base_ms if empty_output else self.transient_base_ms
        return min(base * 1.5**attempt + jitter * self.jitter_ms, self.transient_cap_ms)


async def with_error_handling(
    operation: Callable[[], Awaitable[T]],
    context: str,
    fallback: Optional[Callable[[], Awaitable[T]]] = None,
    max_retries: Optional[int] = None,
    *,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    jitter: Callable[[], float] = random.random,
) -> T:
    """Run a generation operation under the retry policy.

    The operation is attempted at most max_retries + 1 times. Cancellation
    is never caught, so it propagates from the operation or a backoff sleep.

    Args:
        operation: Zero-argument coroutine factory for the call.
        context: Short description used in error messages and logs.
        fallback: Optional coroutine factory run once when the primary fails.
        max_retries: Retries after the first attempt. Defaults to the policy.
        policy: Backoff parameters. Defaults to settings.
        sleep: Awaitable sleep taking seconds.
        jitter: Source of random values in [0, 1).

    Returns:
        The operation's (or fallback's) result.

    Raises:
        ContentFilterError: Output was blocked by the safety filter.
        ModelUnavailableError: The requested model does not exist.
        FallbackFailedError: Primary and fallback both failed.
        UnknownAIError: Retries exhausted or unclassified failure, no fallback.
    """
    policy = policy or RetryPolicy.from_settings()
    retries = policy.max_retries if max_retries is None else max_retries

    last_error: Optional[Exception] = None

    for attempt in range(retries + 1):
        try:
            return await operation()
        except Exception as error:
            last_error = error
            kind = classify_error(error)
            can_retry = attempt < retries

            if kind is FailureKind.CONTENT_FILTER:
                raise ContentFilterError(
                    f"Content was filtered during {context}",
                    original_error=error,
                ) from error

            if kind is FailureKind.MODEL_UNAVAILABLE:
                raise ModelUnavailableError(
                    f"Model unavailable during {context}",
                    original_error=error,
                ) from error

            if kind is FailureKind.RATE_LIMIT and can_retry:
                delay_ms = policy.rate_limit_delay_ms(attempt, get_retry_after_ms(error))
                logger.warning(
                    "Rate limited during %s: attempt=%d, retrying in %.0fms",
                    context,
                    attempt + 1,
                    delay_ms,
                )
                await sleep(delay_ms / 1000)
                continue

            if kind in (FailureKind.EMPTY_OUTPUT, FailureKind.TRANSIENT) and can_retry:
                delay_ms = policy.transient_delay_ms(
                    attempt,
                    empty_output=kind is FailureKind.EMPTY_OUTPUT,
                    jitter=jitter(),
                )
                logger.warning(
                    "Transient failure during %s: attempt=%d, kind=%s, retrying in %.0fms: %s",
                    context,
                    attempt + 1,
                    kind.value,
                    delay_ms,
                    error,
                )
                await sleep(delay_ms / 1000)
                continue

            break

    assert last_error is not None

    if fallback is not None:
        logger.warning("Primary operation failed during %s, running fallback: %s", context, last_error)
        try:
            return await fallback()
        except Exception as fallback_error:
            raise FallbackFailedError(
                f"Both primary and fallback operations failed during {context}",
                primary_error=last_error,
                fallback_error=fallback_error,
            ) from fallback_error

    logger.error("Operation failed during %s: %s", context, last_error)
    raise UnknownAIError(
        f"Operation failed during {context}: {last_error}",
        original_error=last_error,
    ) from last_error
