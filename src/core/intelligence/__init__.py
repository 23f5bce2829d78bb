# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intelligence module for model-backed operations.

LiteLLM is the single interface to generation providers. Everything that
talks to a model goes through src.core.intelligence.llm.

Example:
    >>> from src.core.intelligence import LLMClient, ModelRouter
    >>> client = LLMClient()
    >>> config = ModelRouter().select_model("agent")
"""

from src.core.intelligence.llm import LLMClient, ModelRouter

__all__ = [
    "LLMClient",
    "ModelRouter",
]
