# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""LLM client, retry policy and output repair using LiteLLM.

Components:
- LLMClient: single provider calls with typed failures
- ModelRouter: task presets (model, temperature, thinking budget)
- with_error_handling: retry/backoff/fallback policy for every call
- repair_and_parse / generate_structured: structured output recovery

Example:
    >>> from src.core.intelligence.llm import LLMClient, with_error_handling
    >>> client = LLMClient()
    >>> response = await with_error_handling(
    ...     lambda: client.complete("What is 2+2?"),
    ...     "arithmetic",
    ... )
"""

from src.core.intelligence.llm.client import (
    LLMClient,
    LLMResponse,
    LLMToolResponse,
    ToolCall,
)
from src.core.intelligence.llm.errors import (
    AIErrorCode,
    AIServiceError,
    ContentFilterError,
    FallbackFailedError,
    InvalidResponseError,
    LLMError,
    ModelUnavailableError,
    ProviderContentFilterError,
    ProviderEmptyOutputError,
    ProviderMalformedOutputError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTransientError,
    RateLimitError,
    UnknownAIError,
)
from src.core.intelligence.llm.repair import (
    repair_and_parse,
    repair_json_syntax,
    repair_json_with_llm,
    strip_code_fences,
)
from src.core.intelligence.llm.retry import (
    FailureKind,
    RetryPolicy,
    classify_error,
    with_error_handling,
)
from src.core.intelligence.llm.router import (
    ModelConfig,
    ModelRouter,
    TaskType,
    ThinkingLevel,
)
from src.core.intelligence.llm.structured import generate_structured

__all__ = [
    # Client
    "LLMClient",
    "LLMResponse",
    "LLMToolResponse",
    "ToolCall",
    # Routing
    "ModelConfig",
    "ModelRouter",
    "TaskType",
    "ThinkingLevel",
    # Errors
    "AIErrorCode",
    "AIServiceError",
    "ContentFilterError",
    "FallbackFailedError",
    "InvalidResponseError",
    "LLMError",
    "ModelUnavailableError",
    "ProviderContentFilterError",
    "ProviderEmptyOutputError",
    "ProviderMalformedOutputError",
    "ProviderModelNotFoundError",
    "ProviderRateLimitError",
    "ProviderTransientError",
    "RateLimitError",
    "UnknownAIError",
    # Retry
    "FailureKind",
    "RetryPolicy",
    "classify_error",
    "with_error_handling",
    # Repair
    "generate_structured",
    "repair_and_parse",
    "repair_json_syntax",
    "repair_json_with_llm",
    "strip_code_fences",
]
