# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the research tools.

Tests cover:
- Knowledge tools (search, ask, multi-search, notebook chat, context)
- Web tools
- Intent tools
- Result payloads
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.agents.context import KnowledgeModelConfig
from src.core.tools import (
    ArticleDraftResult,
    KnowledgeAnswerResult,
    KnowledgeSearchResult,
    MediaDraftResult,
    MultiSearchResult,
    MultiWebSearchResult,
    NotebookChatResult,
    NotebookContextResult,
    PostDraftResult,
    SearchResponse,
    ToolContext,
    ToolFailure,
    WebSearchResult,
)
from src.infrastructure.knowledge import KnowledgeServiceError
from src.infrastructure.web_search import WebSearchError
from src.tools.intents import CreateArticleDraftTool, CreateMediaDraftTool, CreatePostDraftTool
from src.tools.knowledge import (
    AskKnowledgeTool,
    BuildContextTool,
    ChatWithNotebookTool,
    SearchKnowledgeTool,
    SearchMultipleTool,
)
from src.tools.web import WebSearchMultipleTool, WebSearchTool
from tests.factories import make_hit


@pytest.mark.unit
class TestSearchKnowledgeTool:
    """Tests for search_knowledge."""

    @pytest.mark.asyncio
    async def test_search_defaults(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that defaults and the notebook scope reach the service."""
        result = await SearchKnowledgeTool().execute({"query": " pricing "}, tool_context)

        assert isinstance(result, KnowledgeSearchResult)
        assert result.query == "pricing"
        assert result.total_count == 2
        knowledge_service.search.assert_awaited_once_with(
            "pricing",
            search_type="vector",
            limit=5,
            minimum_score=0.3,
            notebook_id="notebook:abc",
        )

    @pytest.mark.asyncio
    async def test_invalid_type_falls_back_to_vector(
        self, tool_context: ToolContext, knowledge_service: MagicMock
    ) -> None:
        """Test that an unknown search type is treated as vector."""
        await SearchKnowledgeTool().execute({"query": "pricing", "type": "fuzzy", "limit": 2}, tool_context)

        kwargs = knowledge_service.search.call_args.kwargs
        assert kwargs["search_type"] == "vector"
        assert kwargs["limit"] == 2

    @pytest.mark.asyncio
    async def test_service_failure(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that a service error becomes a failure result."""
        knowledge_service.search.side_effect = KnowledgeServiceError("connection refused")

        result = await SearchKnowledgeTool().execute({"query": "pricing"}, tool_context)

        assert result == ToolFailure(error="Failed to search knowledge base")
        assert result.to_payload() == {"success": False, "error": "Failed to search knowledge base"}

    @pytest.mark.asyncio
    async def test_payload(self, tool_context: ToolContext) -> None:
        """Test the payload sent back to the model."""
        result = await SearchKnowledgeTool().execute({"query": "pricing"}, tool_context)

        payload = json.loads(result.to_llm_message())
        assert payload["success"] is True
        assert payload["totalCount"] == 2
        assert payload["results"][0] == {
            "content": "Pricing is tiered by seat count.",
            "source": "Pricing Guide.pdf",
            "score": 0.92,
            "sourceId": "source:1",
            "metadata": {"page": 4},
        }


@pytest.mark.unit
class TestAskKnowledgeTool:
    """Tests for ask_knowledge."""

    @pytest.mark.asyncio
    async def test_ask_with_model_overrides(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that request model overrides reach the service."""
        tool_context.model_config = KnowledgeModelConfig(answerModel="gpt-4o")

        result = await AskKnowledgeTool().execute({"question": "How do we price?"}, tool_context)

        assert result == KnowledgeAnswerResult(
            question="How do we price?",
            answer="We price per seat with volume discounts.",
        )
        knowledge_service.ask.assert_awaited_once_with(
            "How do we price?",
            strategy_model=None,
            answer_model="gpt-4o",
            final_answer_model=None,
        )

    @pytest.mark.asyncio
    async def test_service_failure(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        knowledge_service.ask.side_effect = KnowledgeServiceError("timeout")

        result = await AskKnowledgeTool().execute({"question": "Why?"}, tool_context)

        assert result == ToolFailure(error="Failed to query knowledge base")


@pytest.mark.unit
class TestSearchMultipleTool:
    """Tests for search_multiple."""

    @pytest.mark.asyncio
    async def test_results_in_query_order(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that searches run per query and keep the query order."""
        knowledge_service.search.side_effect = [
            SearchResponse(results=[make_hit("source:a")], total_count=1),
            SearchResponse(results=[make_hit("source:b")], total_count=1),
        ]

        result = await SearchMultipleTool().execute({"queries": ["pricing", "discounts"]}, tool_context)

        assert isinstance(result, MultiSearchResult)
        assert [search.query for search in result.searches] == ["pricing", "discounts"]
        assert result.searches[1].results[0].id == "source:b"
        assert knowledge_service.search.call_args.kwargs["limit"] == 3
        assert result.to_payload()["totalQueries"] == 2

    def test_rejects_too_many_queries(self) -> None:
        """Test that more than five queries are invalid."""
        with pytest.raises(ValueError, match="At most 5"):
            SearchMultipleTool().validate_params({"queries": ["q"] * 6})

    def test_rejects_non_list(self) -> None:
        with pytest.raises(ValueError):
            SearchMultipleTool().validate_params({"queries": "pricing"})

    @pytest.mark.asyncio
    async def test_any_failure_fails_all(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        knowledge_service.search.side_effect = KnowledgeServiceError("down")

        result = await SearchMultipleTool().execute({"queries": ["a", "b"]}, tool_context)

        assert isinstance(result, ToolFailure)


@pytest.mark.unit
class TestChatWithNotebookTool:
    """Tests for chat_with_notebook."""

    @pytest.mark.asyncio
    async def test_opens_session(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that the first call creates a session and returns its id."""
        result = await ChatWithNotebookTool().execute({"message": "Tell me more"}, tool_context)

        assert result == NotebookChatResult(session_id="chat_session:1", response="Seats are billed monthly.")
        knowledge_service.create_chat_session.assert_awaited_once()
        assert knowledge_service.create_chat_session.call_args.args == ("notebook:abc",)

    @pytest.mark.asyncio
    async def test_continues_session(self, tool_context: ToolContext, knowledge_service: MagicMock) -> None:
        """Test that a given session id is reused."""
        await ChatWithNotebookTool().execute(
            {"message": "And annual plans?", "session_id": "chat_session:1"}, tool_context
        )

        knowledge_service.create_chat_session.assert_not_awaited()
        assert knowledge_service.execute_chat.call_args.args == ("chat_session:1", "And annual plans?")

    @pytest.mark.asyncio
    async def test_requires_notebook(self, knowledge_service: MagicMock) -> None:
        """Test that the tool fails without a notebook."""
        context = ToolContext(knowledge=knowledge_service)

        result = await ChatWithNotebookTool().execute({"message": "hi"}, context)

        assert result == ToolFailure(error="chat_with_notebook requires a notebook id")
        knowledge_service.execute_chat.assert_not_awaited()


@pytest.mark.unit
class TestBuildContextTool:
    """Tests for build_context."""

    @pytest.mark.asyncio
    async def test_build_context(self, tool_context: ToolContext) -> None:
        result = await BuildContextTool().execute({}, tool_context)

        assert result == NotebookContextResult(context={"sources": ["a", "b"]}, token_count=120, char_count=480)
        assert result.to_payload()["tokenCount"] == 120

    @pytest.mark.asyncio
    async def test_requires_notebook(self, knowledge_service: MagicMock) -> None:
        result = await BuildContextTool().execute({}, ToolContext(knowledge=knowledge_service))

        assert isinstance(result, ToolFailure)


@pytest.mark.unit
class TestWebSearchTool:
    """Tests for web_search."""

    @pytest.mark.asyncio
    async def test_search_caps_results(self, tool_context: ToolContext, web_search_service: MagicMock) -> None:
        """Test that max_results is capped at ten."""
        result = await WebSearchTool().execute({"query": "ai pricing", "max_results": 50}, tool_context)

        assert isinstance(result, WebSearchResult)
        assert result.results[0].url == "https://example.com/ai-pricing"
        web_search_service.search.assert_awaited_once_with("ai pricing", max_results=10)
        assert result.to_payload()["results"][0]["publishedDate"] == "2025-05-01"

    @pytest.mark.asyncio
    async def test_not_configured(self, knowledge_service: MagicMock) -> None:
        """Test the failure when no web search service is available."""
        result = await WebSearchTool().execute({"query": "x"}, ToolContext(knowledge=knowledge_service))

        assert result == ToolFailure(error="Web search is not configured")

    @pytest.mark.asyncio
    async def test_provider_error_message(self, tool_context: ToolContext, web_search_service: MagicMock) -> None:
        """Test that the provider's message is passed to the model."""
        web_search_service.search.side_effect = WebSearchError("Web search failed: 432")

        result = await WebSearchTool().execute({"query": "x"}, tool_context)

        assert result == ToolFailure(error="Web search failed: 432")


@pytest.mark.unit
class TestWebSearchMultipleTool:
    """Tests for web_search_multiple."""

    @pytest.mark.asyncio
    async def test_parallel_searches(self, tool_context: ToolContext, web_search_service: MagicMock) -> None:
        result = await WebSearchMultipleTool().execute(
            {"queries": ["a", "b"], "max_results_per_query": 9}, tool_context
        )

        assert isinstance(result, MultiWebSearchResult)
        assert [search.query for search in result.searches] == ["a", "b"]
        assert web_search_service.search.call_args.kwargs["max_results"] == 5

    @pytest.mark.asyncio
    async def test_failure_without_message(self, tool_context: ToolContext, web_search_service: MagicMock) -> None:
        web_search_service.search.side_effect = RuntimeError()

        result = await WebSearchMultipleTool().execute({"queries": ["a"]}, tool_context)

        assert result == ToolFailure(error="Failed to execute multiple web searches")


@pytest.mark.unit
class TestIntentTools:
    """Tests for the draft intent tools."""

    @pytest.mark.asyncio
    async def test_article_draft(self, tool_context: ToolContext) -> None:
        result = await CreateArticleDraftTool().execute({"title": "Pricing", "content": "<p>Hi</p>"}, tool_context)

        assert result == ArticleDraftResult(title="Pricing", content="<p>Hi</p>")
        assert result.to_payload() == {
            "success": True,
            "type": "article_draft",
            "title": "Pricing",
            "content": "<p>Hi</p>",
        }

    @pytest.mark.asyncio
    async def test_post_draft_without_platform(self, tool_context: ToolContext) -> None:
        result = await CreatePostDraftTool().execute({"caption": "New plans! #saas"}, tool_context)

        assert result == PostDraftResult(caption="New plans! #saas")
        assert "platform" not in result.to_payload()

    @pytest.mark.asyncio
    async def test_media_draft(self, tool_context: ToolContext) -> None:
        result = await CreateMediaDraftTool().execute({"prompt": "A pricing chart"}, tool_context)

        assert result == MediaDraftResult(prompt="A pricing chart")

    @pytest.mark.asyncio
    async def test_intents_call_no_service(self) -> None:
        """Test that intent tools work without any service."""
        context = ToolContext(knowledge=MagicMock(search=AsyncMock()))

        await CreateMediaDraftTool().execute({"prompt": "x"}, context)

        context.knowledge.search.assert_not_awaited()
