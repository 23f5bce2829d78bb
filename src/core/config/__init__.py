# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the research engine.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables
- Subsettings for the model provider, retry policy, knowledge service,
  web search and the research agent

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
    >>> settings.research.default_max_steps
    10
"""

from src.core.config.settings import (
    KnowledgeSettings,
    LLMSettings,
    ResearchSettings,
    RetrySettings,
    Settings,
    WebSearchSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "KnowledgeSettings",
    "LLMSettings",
    "ResearchSettings",
    "RetrySettings",
    "Settings",
    "WebSearchSettings",
    "clear_settings_cache",
    "get_settings",
]
