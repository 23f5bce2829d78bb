# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests

Services are faked with AsyncMock objects returning the same dataclasses
the real HTTP clients return, and the model is scripted turn by turn.
"""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config.settings import Settings, clear_settings_cache
from src.core.intelligence.llm.client import LLMClient, LLMResponse
from src.core.intelligence.llm.retry import RetryPolicy
from src.core.tools import (
    AskResponse,
    ChatResponse,
    ChatSession,
    ChatTurn,
    NotebookContext,
    SearchHit,
    SearchResponse,
    ToolContext,
    WebHit,
    WebSearchResponse,
)
from tests.factories import make_hit, text_turn


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests independent of the developer's environment and .env file."""
    for name in (
        "ENVIRONMENT",
        "GOOGLE_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "OPEN_NOTEBOOK_PASSWORD",
        "TAVILY_API_KEY",
        "RESEARCH_DEADLINE_SECONDS",
        "RESEARCH_DEFAULT_MAX_STEPS",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide settings with development defaults."""
    return Settings(_env_file=None)


@pytest.fixture
def no_wait_policy() -> RetryPolicy:
    """Retry policy with zero delays."""
    return RetryPolicy(
        max_retries=2,
        rate_limit_base_ms=0,
        rate_limit_cap_ms=0,
        transient_base_ms=0,
        empty_output_base_ms=0,
        transient_cap_ms=0,
        jitter_ms=0,
    )


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def sample_hits() -> list[SearchHit]:
    """Provide two search hits from different sources."""
    return [
        make_hit("source:1", "Pricing is tiered by seat count.", "Pricing Guide.pdf", 0.92, {"page": 4}),
        make_hit("source:2", "Enterprise plans include SSO.", "Sales Playbook", 0.71),
    ]


@pytest.fixture
def knowledge_service(sample_hits: list[SearchHit]) -> MagicMock:
    """Provide a fake knowledge service."""
    service = MagicMock()
    service.search = AsyncMock(
        return_value=SearchResponse(results=sample_hits, total_count=len(sample_hits))
    )
    service.ask = AsyncMock(
        return_value=AskResponse(
            answer="We price per seat with volume discounts.",
            question="How do we price?",
        )
    )
    service.create_chat_session = AsyncMock(
        return_value=ChatSession(id="chat_session:1", notebook_id="notebook:abc")
    )
    service.execute_chat = AsyncMock(
        return_value=ChatResponse(
            session_id="chat_session:1",
            messages=[
                ChatTurn(role="user", content="Tell me more"),
                ChatTurn(role="assistant", content="Seats are billed monthly."),
            ],
        )
    )
    service.build_context = AsyncMock(
        return_value=NotebookContext(context={"sources": ["a", "b"]}, token_count=120, char_count=480)
    )
    return service


@pytest.fixture
def web_search_service() -> MagicMock:
    """Provide a fake web search service."""
    service = MagicMock()
    service.search = AsyncMock(
        return_value=WebSearchResponse(
            query="ai pricing news",
            results=[
                WebHit(
                    title="AI pricing trends",
                    url="https://example.com/ai-pricing",
                    content="Usage-based pricing is rising.",
                    score=0.8,
                    published_date="2025-05-01",
                )
            ],
        )
    )
    return service


@pytest.fixture
def tool_context(knowledge_service: MagicMock, web_search_service: MagicMock) -> ToolContext:
    """Provide a tool context scoped to a notebook with web search enabled."""
    return ToolContext(
        knowledge=knowledge_service,
        web_search=web_search_service,
        notebook_id="notebook:abc",
        channel_id="channel:1",
    )


# =============================================================================
# LLM Fixtures
# =============================================================================


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """Create a mock LLM client; tests script complete_with_tools turns."""
    client = MagicMock(spec=LLMClient)
    client.complete_with_tools = AsyncMock(return_value=text_turn("Final answer."))
    client.complete = AsyncMock(
        return_value=LLMResponse(content="<p>Draft</p>", model="gemini/gemini-2.5-pro")
    )
    return client


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (fake services, full agent)"
    )
