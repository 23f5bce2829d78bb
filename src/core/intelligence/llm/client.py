# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client using LiteLLM for multi-provider support.

This module provides a unified LLM interface through LiteLLM. It performs
exactly one provider call per method invocation: retries belong to the
retry policy in src.core.intelligence.llm.retry, so LiteLLM's own retries
are disabled.

Provider failures are translated into typed LLMError subclasses (rate limit,
content filter, model not found, transient, empty output) so callers can
classify them without parsing messages.

Example:
    >>> from src.core.intelligence.llm import LLMClient
    >>> client = LLMClient()
    >>> response = await client.complete("Summarize the release notes")
    >>> print(response.content)
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import litellm
from litellm import acompletion

from src.core.config.settings import LLMSettings, get_settings
from src.core.intelligence.llm.errors import (
    LLMError,
    ProviderContentFilterError,
    ProviderEmptyOutputError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from an LLM completion.

    Attributes:
        content: The generated text content.
        model: The model that generated the response.
        tokens_input: Number of input tokens used.
        tokens_output: Number of output tokens generated.
        finish_reason: Why generation stopped (stop, length, etc.).
        raw_response: Original response object from LiteLLM.
    """

    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[object] = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        """Get total tokens used (input + output)."""
        return self.tokens_input + self.tokens_output


@dataclass
class ToolCall:
    """A tool call requested by the LLM.

    Attributes:
        id: Unique identifier for this tool call.
        name: Name of the tool to execute.
        arguments: Arguments to pass to the tool.
    """

    id: str
    name: str
    arguments: dict[str, Any]

    def to_message_dict(self) -> dict[str, Any]:
        """Render as an assistant tool_calls entry in OpenAI format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments),
            },
        }


@dataclass
class LLMToolResponse(LLMResponse):
    """Response from an LLM completion with tool calling support.

    Attributes:
        tool_calls: List of tool calls requested by the LLM.
    """

    tool_calls: list[ToolCall] = field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        """Check if response contains tool calls."""
        return len(self.tool_calls) > 0


def _parse_tool_arguments(raw: Any) -> dict[str, Any]:
    """Parse tool call arguments, which may be a dict or a JSON string."""
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        logger.warning("Discarding unparseable tool arguments: %r", raw)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _retry_after_seconds(error: Exception) -> Optional[float]:
    """Read a retry-after header from a LiteLLM exception's response."""
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def translate_provider_error(error: Exception, model: str) -> LLMError:
    """Map a LiteLLM exception onto the typed provider error hierarchy.

    Args:
        error: Exception raised by LiteLLM.
        model: Model the call was made with.

    Returns:
        An LLMError subclass describing the failure kind. Failures that do
        not match a known kind become a plain LLMError.
    """
    message = str(error)

    if isinstance(error, LLMError):
        return error
    if isinstance(error, litellm.RateLimitError):
        return ProviderRateLimitError(
            message,
            model=model,
            retry_after=_retry_after_seconds(error),
            original_error=error,
        )
    if isinstance(error, litellm.ContentPolicyViolationError):
        return ProviderContentFilterError(message, model=model, original_error=error)
    if isinstance(error, litellm.NotFoundError):
        return ProviderModelNotFoundError(message, model=model, original_error=error)
    if isinstance(
        error,
        (
            litellm.Timeout,
            litellm.APIConnectionError,
            litellm.ServiceUnavailableError,
            litellm.InternalServerError,
        ),
    ):
        return ProviderTransientError(message, model=model, original_error=error)
    return LLMError(message, model=model, original_error=error)


class LLMClient:
    """Client for LLM operations via LiteLLM.

    Attributes:
        model: Default model to use for completions.
        timeout: Request timeout in seconds.

    Example:
        >>> client = LLMClient()
        >>> response = await client.complete(
        ...     prompt="What is retrieval augmented generation?",
        ...     temperature=0.7,
        ... )
        >>> print(response.content)
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the LLM client.

        Args:
            model: Default model in LiteLLM format. Falls back to settings.
            timeout: Request timeout in seconds. Falls back to settings.
            llm_settings: LLM configuration. Uses get_settings() if None.
        """
        self._settings = llm_settings or get_settings().llm
        self._model = model or self._settings.default_model
        self._timeout = timeout or self._settings.request_timeout

        litellm.drop_params = True

        logger.info(
            "LLMClient initialized with model=%s, timeout=%.1fs",
            self._model,
            self._timeout,
        )

    @property
    def model(self) -> str:
        """Get the default model."""
        return self._model

    @property
    def timeout(self) -> float:
        """Get the request timeout in seconds."""
        return self._timeout

    def _get_provider_params(self, model: str) -> dict[str, Any]:
        """Get api_key / api_base for the provider implied by the model prefix."""
        params: dict[str, Any] = {}
        if model.startswith(("ollama/", "ollama_chat/")):
            params["api_base"] = self._settings.ollama_base_url
            return params

        if model.startswith("gemini/"):
            api_key = self._settings.google_api_key
        elif model.startswith(("anthropic/", "claude")):
            api_key = self._settings.anthropic_api_key
        else:
            api_key = self._settings.openai_api_key

        if api_key is not None:
            params["api_key"] = api_key.get_secret_value()
        return params

    async def _acompletion(self, model: str, **kwargs: Any) -> Any:
        """Make one provider call and translate its failures."""
        try:
            return await acompletion(
                model=model,
                timeout=self._timeout,
                num_retries=0,
                **self._get_provider_params(model),
                **kwargs,
            )
        except Exception as e:
            error = translate_provider_error(e, model)
            logger.error(
                "Completion failed: model=%s, kind=%s, error=%s",
                model,
                type(error).__name__,
                str(e),
            )
            raise error from e

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion for the given prompt.

        Args:
            prompt: User prompt text.
            model: Override default model for this request.
            system_prompt: Optional system prompt to set context.
            temperature: Sampling temperature (0-2).
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional LiteLLM parameters (response_format, thinking).

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            LLMError: If the provider call fails.
            ValueError: If prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return await self.complete_with_messages(
            messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def complete_with_messages(
        self,
        messages: list[dict[str, Any]],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion from a list of messages in OpenAI format.

        Args:
            messages: Conversation messages.
            model: Override default model for this request.
            temperature: Sampling temperature (0-2).
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional LiteLLM parameters.

        Returns:
            LLMResponse with generated content and metadata.

        Raises:
            ProviderEmptyOutputError: If the provider returned no text.
            ProviderContentFilterError: If the output was filtered.
            LLMError: If the provider call fails.
            ValueError: If messages list is empty.
        """
        if not messages:
            raise ValueError("Messages list cannot be empty")

        use_model = model or self._model
        response = await self._acompletion(
            use_model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

        if not response.choices:
            raise ProviderEmptyOutputError("No output generated", model=use_model)

        choice = response.choices[0]
        content = choice.message.content or ""
        finish_reason = choice.finish_reason or "stop"

        if finish_reason == "content_filter":
            raise ProviderContentFilterError("Response blocked by content-filter", model=use_model)
        if not content.strip():
            raise ProviderEmptyOutputError("No output generated", model=use_model)

        usage = getattr(response, "usage", None)
        tokens_input = getattr(usage, "prompt_tokens", 0) or 0
        tokens_output = getattr(usage, "completion_tokens", 0) or 0

        logger.debug(
            "Completion generated: model=%s, tokens_in=%d, tokens_out=%d",
            use_model,
            tokens_input,
            tokens_output,
        )

        return LLMResponse(
            content=content,
            model=use_model,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            finish_reason=finish_reason,
            raw_response=response,
        )

    async def complete_with_tools(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        tool_choice: str = "auto",
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs: Any,
    ) -> LLMToolResponse:
        """Generate a completion with tool calling support.

        The response may contain tool_calls that should be executed, with
        results sent back in a follow-up call as role='tool' messages.

        Args:
            messages: Conversation messages in OpenAI format.
            tools: Tool definitions in OpenAI function format.
            tool_choice: "auto", "none" or "required".
            model: Override default model for this request.
            temperature: Sampling temperature (0-2).
            max_tokens: Maximum tokens to generate.
            **kwargs: Additional LiteLLM parameters.

        Returns:
            LLMToolResponse with content and/or tool_calls.

        Raises:
            ProviderEmptyOutputError: If neither text nor tool calls came back.
            ProviderContentFilterError: If the output was filtered.
            LLMError: If the provider call fails.
            ValueError: If messages list is empty.
        """
        if not messages:
            raise ValueError("Messages list cannot be empty")

        use_model = model or self._model
        tool_kwargs: dict[str, Any] = {}
        if tools:
            tool_kwargs = {"tools": tools, "tool_choice": tool_choice}

        response = await self._acompletion(
            use_model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **tool_kwargs,
            **kwargs,
        )

        if not response.choices:
            raise ProviderEmptyOutputError("No output generated", model=use_model)

        choice = response.choices[0]
        message = choice.message
        content = message.content or ""
        finish_reason = choice.finish_reason or "stop"

        parsed_tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=_parse_tool_arguments(tc.function.arguments),
            )
            for tc in (getattr(message, "tool_calls", None) or [])
        ]

        if finish_reason == "content_filter":
            raise ProviderContentFilterError("Response blocked by content-filter", model=use_model)
        if not content.strip() and not parsed_tool_calls:
            raise ProviderEmptyOutputError("No output generated", model=use_model)

        usage = getattr(response, "usage", None)
        tokens_input = getattr(usage, "prompt_tokens", 0) or 0
        tokens_output = getattr(usage, "completion_tokens", 0) or 0

        logger.debug(
            "Tool completion generated: model=%s, tokens_in=%d, tokens_out=%d, tool_calls=%d",
            use_model,
            tokens_input,
            tokens_output,
            len(parsed_tool_calls),
        )

        return LLMToolResponse(
            content=content,
            model=use_model,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            finish_reason=finish_reason,
            tool_calls=parsed_tool_calls,
            raw_response=response,
        )

    def __repr__(self) -> str:
        return f"LLMClient(model={self._model!r}, timeout={self._timeout})"
