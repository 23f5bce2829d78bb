# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the research flow.

These tests run the full research path with real components: settings,
model router, LLMClient, tool registry, agent loop, stream bridge and the
Open Notebook client. Only the edges are replaced: LiteLLM's acompletion
returns scripted turns and the knowledge service's HTTP layer is served
from memory.

Tests cover:
- Single-shot research with knowledge search and Q&A
- Citations in the answer resolving to extracted sources
- Streaming as NDJSON
- Retry after a provider rate limit
- Early stream close
"""

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from src.core.agents.citations import find_references
from src.core.agents.context import ResearchRequest
from src.core.agents.research import ResearchAgent
from src.core.agents.stream import encode_ndjson, parse_chunk
from src.core.config.settings import Settings
from src.core.intelligence.llm.client import LLMClient
from src.core.intelligence.llm.retry import RetryPolicy
from src.core.intelligence.llm.router import ModelRouter
from src.infrastructure.knowledge import OpenNotebookClient

ACOMPLETION = "src.core.intelligence.llm.client.acompletion"

FINAL_ANSWER = (
    "Seats are priced per month [[ref:id=source:pricing|name=Pricing Guide.pdf|loc=page:4]]. "
    "Enterprise plans add SSO [[ref:id=note:sso|name=Sales Playbook]]."
)


# =============================================================================
# Fakes
# =============================================================================


class InMemoryOpenNotebook:
    """Serves the Open Notebook endpoints used by the research tools."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict[str, Any] | None]] = []

    async def handle(self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None) -> Any:
        self.requests.append((endpoint, method, body))
        if endpoint == "/api/search":
            return {
                "results": [
                    {
                        "id": "source:pricing",
                        "content": "Seats are billed monthly at a flat rate.",
                        "title": "Pricing Guide.pdf",
                        "relevance": 0.88,
                        "metadata": {"page": 4},
                    },
                    {
                        "id": "note:sso",
                        "content": "Enterprise plans include SSO and audit logs.",
                        "source_name": "Sales Playbook",
                        "score": 0.64,
                    },
                ],
                "total_count": 2,
                "search_type": body["type"] if body else "vector",
            }
        if endpoint == "/api/models":
            return [{"id": "model:flash", "name": "gemini-2.5-flash", "provider": "google"}]
        if endpoint == "/api/search/ask/simple":
            return {"answer": "Pricing is per seat with volume discounts.", "question": body["question"]}
        raise AssertionError(f"Unexpected endpoint: {endpoint}")

    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _, _ in self.requests]


def completion(
    content: str | None = None,
    tool_calls: list[Any] | None = None,
    finish_reason: str | None = None,
) -> SimpleNamespace:
    """Build a LiteLLM-shaped completion response."""
    return SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(content=content, tool_calls=tool_calls),
                finish_reason=finish_reason or ("tool_calls" if tool_calls else "stop"),
            )
        ],
        usage=SimpleNamespace(prompt_tokens=100, completion_tokens=20),
    )


def tool_call(id: str, name: str, arguments: dict[str, Any]) -> SimpleNamespace:
    return SimpleNamespace(id=id, function=SimpleNamespace(name=name, arguments=json.dumps(arguments)))


def research_turns() -> list[SimpleNamespace]:
    """Search and ask in one step, then answer with citations."""
    return [
        completion(
            tool_calls=[
                tool_call("call_1", "search_knowledge", {"query": "pricing"}),
                tool_call("call_2", "ask_knowledge", {"question": "How do we price seats?"}),
            ]
        ),
        completion(FINAL_ANSWER),
    ]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def notebook() -> InMemoryOpenNotebook:
    return InMemoryOpenNotebook()


@pytest.fixture
def agent(notebook: InMemoryOpenNotebook, settings: Settings, tmp_path: Path) -> ResearchAgent:
    """Research agent over the in-memory knowledge service."""
    knowledge = OpenNotebookClient(base_url="http://notebook.test", password="secret")
    knowledge._request = AsyncMock(side_effect=notebook.handle)  # type: ignore[method-assign]
    return ResearchAgent(
        knowledge=knowledge,
        llm_client=LLMClient(llm_settings=settings.llm),
        router=ModelRouter(config_dir=tmp_path, llm_settings=settings.llm),
        settings=settings,
        retry_policy=RetryPolicy(
            max_retries=2,
            rate_limit_base_ms=0,
            rate_limit_cap_ms=0,
            transient_base_ms=0,
            empty_output_base_ms=0,
            transient_cap_ms=0,
            jitter_ms=0,
        ),
    )


# =============================================================================
# Tests
# =============================================================================


@pytest.mark.integration
class TestSingleShotResearch:
    """Research through research_query."""

    @pytest.mark.asyncio
    async def test_answer_with_sources(self, agent: ResearchAgent, notebook: InMemoryOpenNotebook) -> None:
        """Test the complete single-shot flow."""
        with patch(ACOMPLETION, AsyncMock(side_effect=research_turns())) as mock_completion:
            response = await agent.research_query(
                ResearchRequest.model_validate(
                    {"query": "How do we price seats?", "notebookId": "notebook:sales"}
                )
            )

        assert response.response == FINAL_ANSWER
        assert response.steps == 2
        assert [call.name for call in response.tool_calls or []] == ["search_knowledge", "ask_knowledge"]

        assert response.sources is not None
        assert [source.id for source in response.sources] == [
            "ask-How do we price seats?",
            "source:pricing",
            "note:sso",
        ]
        cited = {reference.id for reference in find_references(response.response)}
        assert cited <= {source.id for source in response.sources}

        assert notebook.endpoints()[0] == "/api/search"
        assert notebook.requests[0][2]["notebook_id"] == "notebook:sales"
        assert "/api/search/ask/simple" in notebook.endpoints()
        ask_body = notebook.requests[-1][2]
        assert ask_body["answer_model"] == "model:flash"

        second_call = mock_completion.call_args_list[1].kwargs
        tool_messages = [m for m in second_call["messages"] if m["role"] == "tool"]
        assert [m["tool_call_id"] for m in tool_messages] == ["call_1", "call_2"]
        assert json.loads(tool_messages[0]["content"])["results"][0]["sourceId"] == "source:pricing"
        assert second_call["model"] == "gemini/gemini-2.5-pro"
        assert second_call["thinking"] == {"type": "enabled", "budget_tokens": 8192}

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, agent: ResearchAgent) -> None:
        """Test that a rate-limited step is retried and the run completes."""
        rate_limited = litellm.RateLimitError(message="429 quota", llm_provider="gemini", model="gemini/x")

        with patch(ACOMPLETION, AsyncMock(side_effect=[rate_limited, *research_turns()])) as mock_completion:
            response = await agent.research_query(ResearchRequest(query="How do we price seats?"))

        assert response.steps == 2
        assert mock_completion.await_count == 3


@pytest.mark.integration
class TestStreamingResearch:
    """Research through research_query_stream."""

    @pytest.mark.asyncio
    async def test_ndjson_stream(self, agent: ResearchAgent) -> None:
        """Test the encoded event stream from start to done."""
        request = ResearchRequest(query="How do we price seats?", notebook_id="notebook:sales", verbose=True)

        with patch(ACOMPLETION, AsyncMock(side_effect=research_turns())):
            lines = [line async for line in encode_ndjson(agent.research_query_stream(request))]

        assert all(line.endswith(b"\n") for line in lines)
        chunks = [parse_chunk(line.decode("utf-8")) for line in lines]
        assert [chunk.type for chunk in chunks] == [
            "status",
            "status",
            "tool_start",
            "tool_result",
            "tool_start",
            "tool_result",
            "delta",
            "sources",
            "done",
        ]
        assert chunks[2].tool == "search_knowledge"
        assert chunks[4].tool == "ask_knowledge"

        wire = json.loads(lines[-1])
        assert wire["type"] == "done"
        assert wire["steps"] == 2
        assert wire["sources"][1]["location"] == {"type": "page", "value": "4", "label": "Page 4"}

    @pytest.mark.asyncio
    async def test_stream_error_from_provider(self, agent: ResearchAgent) -> None:
        """Test that a filtered response ends the stream with one error event."""
        with patch(ACOMPLETION, AsyncMock(return_value=completion(finish_reason="content_filter"))):
            chunks = [chunk async for chunk in agent.research_query_stream(ResearchRequest(query="x"))]

        assert chunks[-1].type == "error"
        assert sum(1 for chunk in chunks if chunk.type in ("done", "error")) == 1

    @pytest.mark.asyncio
    async def test_early_close(self, agent: ResearchAgent) -> None:
        """Test that closing after the first status leaves no pending work."""
        with patch(ACOMPLETION, AsyncMock(side_effect=research_turns())) as mock_completion:
            stream = agent.research_query_stream(ResearchRequest(query="How do we price seats?"))
            first = await stream.__anext__()
            await stream.aclose()

        assert first.type == "status"
        mock_completion.assert_not_awaited()
