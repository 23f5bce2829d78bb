# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the research
engine. Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.research.default_max_steps)
    10
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM provider configuration using LiteLLM.

    LiteLLM handles provider routing based on the model prefix, so the
    research engine only needs the credentials of the providers it uses.

    Attributes:
        default_model: Model used when a task has no explicit preset.
        google_api_key: Google AI API key (gemini/* models).
        openai_api_key: OpenAI API key.
        anthropic_api_key: Anthropic API key.
        ollama_base_url: Base URL for an Ollama server.
        request_timeout: Request timeout in seconds.
        config_dir: Directory holding optional models.yaml task presets.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        extra="ignore",
    )

    default_model: str = "gemini/gemini-2.5-flash"

    google_api_key: SecretStr | None = Field(
        default=None,
        validation_alias="GOOGLE_API_KEY",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias="OPENAI_API_KEY",
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        validation_alias="ANTHROPIC_API_KEY",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        validation_alias="OLLAMA_BASE_URL",
    )

    request_timeout: float = 120.0
    config_dir: Path = Path("config/llm")


class RetrySettings(BaseSettings):
    """Retry and backoff policy for generation calls.

    All durations are in milliseconds.

    Attributes:
        max_retries: Retries after the first attempt.
        rate_limit_base_ms: Base delay for rate-limit backoff.
        rate_limit_cap_ms: Upper bound for rate-limit backoff.
        transient_base_ms: Base delay for transient failures.
        empty_output_base_ms: Base delay when the model produced no output.
        transient_cap_ms: Upper bound for transient backoff.
        jitter_ms: Maximum random jitter added to transient backoff.
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRY_",
        extra="ignore",
    )

    max_retries: int = Field(default=4, ge=0)
    rate_limit_base_ms: int = 10_000
    rate_limit_cap_ms: int = 120_000
    transient_base_ms: int = 1_500
    empty_output_base_ms: int = 3_000
    transient_cap_ms: int = 15_000
    jitter_ms: int = 1_000


class KnowledgeSettings(BaseSettings):
    """Knowledge base (Open Notebook) service configuration.

    Attributes:
        url: Base URL of the knowledge service API.
        password: Bearer token sent with every request.
        default_model: Model name used for Q&A when none is requested.
        models_cache_ttl: Seconds a fetched model list stays valid.
        request_timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPEN_NOTEBOOK_",
        extra="ignore",
    )

    url: str = "http://localhost:5055"
    password: SecretStr | None = None
    default_model: str = "gemini-2.5-flash"
    models_cache_ttl: float = 300.0
    request_timeout: float = 60.0


class WebSearchSettings(BaseSettings):
    """Web search (Tavily) configuration.

    Attributes:
        api_key: Tavily API key. Web search is unavailable without it.
        url: Search endpoint.
        search_depth: Tavily search depth.
        request_timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAVILY_",
        extra="ignore",
    )

    api_key: SecretStr | None = None
    url: str = "https://api.tavily.com/search"
    search_depth: Literal["basic", "advanced"] = "basic"
    request_timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        """Check whether a non-empty API key is set."""
        return bool(self.api_key and self.api_key.get_secret_value())


class ResearchSettings(BaseSettings):
    """Research agent configuration.

    Attributes:
        default_max_steps: Step bound when a request does not set one.
        stream_queue_size: Capacity of the event channel between the agent
            loop and the stream consumer.
        deadline_seconds: Optional wall-clock bound for one research run.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESEARCH_",
        extra="ignore",
    )

    default_max_steps: int = Field(default=10, ge=1)
    stream_queue_size: int = Field(default=64, ge=1)
    deadline_seconds: float | None = None


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        llm: LLM provider settings.
        retry: Retry policy settings.
        knowledge: Knowledge service settings.
        web_search: Web search settings.
        research: Research agent settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    llm: LLMSettings = Field(default_factory=LLMSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    knowledge: KnowledgeSettings = Field(default_factory=KnowledgeSettings)
    web_search: WebSearchSettings = Field(default_factory=WebSearchSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without knowledge service
                credentials.
        """
        if self.environment == "production" and self.knowledge.password is None:
            raise ValueError(
                "Knowledge service password must be set in production. "
                "Set OPEN_NOTEBOOK_PASSWORD environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
