# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the tool registry, manifest and loader.

Tests cover:
- Registration and lookup
- Execution boundary (unknown tools, invalid arguments, unexpected errors)
- Manifest queries
- Per-request tool set selection
"""

from typing import Any
from unittest.mock import patch

import pytest

from src.core.tools import BaseTool, ToolContext, ToolFailure, ToolRegistry, ToolResult
from src.tools import (
    TOOL_MANIFEST,
    create_research_registry,
    get_available_tool_names,
    get_tool_info,
    get_tools_by_category,
    load_tool_class,
)
from src.tools.knowledge import SearchKnowledgeTool

KNOWLEDGE_TOOLS = ["search_knowledge", "ask_knowledge", "search_multiple"]
NOTEBOOK_TOOLS = ["chat_with_notebook", "build_context"]
WEB_TOOLS = ["web_search", "web_search_multiple"]
INTENT_TOOLS = ["create_article_draft", "create_post_draft", "create_media_draft"]


class ExplodingTool(BaseTool):
    """Tool that raises instead of returning a failure."""

    @property
    def name(self) -> str:
        return "explode"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "explode",
                "description": "Always raises",
                "parameters": {"type": "object", "properties": {}, "required": []},
            },
        }

    async def execute(self, params: dict[str, Any], context: ToolContext) -> ToolResult:
        raise RuntimeError("kaboom")


@pytest.mark.unit
class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get(self) -> None:
        registry = ToolRegistry()
        tool = SearchKnowledgeTool()

        registry.register(tool)

        assert registry.get("search_knowledge") is tool
        assert "search_knowledge" in registry
        assert len(registry) == 1
        assert registry.get_definitions()[0]["function"]["name"] == "search_knowledge"

    def test_duplicate_registration(self) -> None:
        registry = ToolRegistry()
        registry.register(SearchKnowledgeTool())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(SearchKnowledgeTool())

    def test_replace_and_unregister(self) -> None:
        registry = ToolRegistry()
        registry.register(SearchKnowledgeTool())
        replacement = SearchKnowledgeTool()

        registry.replace(replacement)

        assert registry.get("search_knowledge") is replacement
        registry.unregister("search_knowledge")
        assert not registry.has("search_knowledge")
        with pytest.raises(KeyError):
            registry.get("search_knowledge")

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self, tool_context: ToolContext) -> None:
        """Test that an unknown name yields a failure result."""
        result = await ToolRegistry().execute("delete_everything", {}, tool_context)

        assert result == ToolFailure(error="Unknown tool: delete_everything")

    @pytest.mark.asyncio
    async def test_execute_missing_required_argument(
        self, tool_context: ToolContext, knowledge_service
    ) -> None:
        """Test that missing required arguments never reach the tool."""
        registry = ToolRegistry()
        registry.register(SearchKnowledgeTool())

        result = await registry.execute("search_knowledge", {"query": ""}, tool_context)

        assert isinstance(result, ToolFailure)
        assert "query" in result.error
        knowledge_service.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_execute_unexpected_error(self, tool_context: ToolContext) -> None:
        """Test that an exception inside a tool becomes a failure result."""
        registry = ToolRegistry()
        registry.register(ExplodingTool())

        result = await registry.execute("explode", {}, tool_context)

        assert result == ToolFailure(error="Tool explode failed: kaboom")


@pytest.mark.unit
class TestManifest:
    """Tests for the tool manifest."""

    def test_all_tools_listed(self) -> None:
        assert get_available_tool_names() == KNOWLEDGE_TOOLS + NOTEBOOK_TOOLS + WEB_TOOLS + INTENT_TOOLS

    def test_get_tool_info(self) -> None:
        info = get_tool_info("web_search")

        assert info is not None
        assert info["category"] == "web"
        assert get_tool_info("missing") is None

    def test_tools_by_category(self) -> None:
        assert get_tools_by_category("notebook") == NOTEBOOK_TOOLS

    @pytest.mark.parametrize("tool_name", list(TOOL_MANIFEST))
    def test_class_path_matches_name(self, tool_name: str) -> None:
        """Test that every manifest entry loads a tool with the same name."""
        tool = load_tool_class(TOOL_MANIFEST[tool_name]["class_path"])()

        assert tool.name == tool_name
        assert tool.definition["function"]["name"] == tool_name


@pytest.mark.unit
class TestCreateResearchRegistry:
    """Tests for create_research_registry."""

    def test_knowledge_only(self) -> None:
        """Test the minimal tool set."""
        assert create_research_registry().list_names() == KNOWLEDGE_TOOLS

    def test_notebook_tools_need_notebook(self) -> None:
        registry = create_research_registry(notebook_id="notebook:abc")

        assert registry.list_names() == KNOWLEDGE_TOOLS + NOTEBOOK_TOOLS

    def test_web_tools_need_flag_and_provider(self) -> None:
        """Test that web tools need both the request flag and a provider."""
        assert create_research_registry(search_web=True).list_names() == KNOWLEDGE_TOOLS
        assert create_research_registry(web_search_available=True).list_names() == KNOWLEDGE_TOOLS
        assert (
            create_research_registry(search_web=True, web_search_available=True).list_names()
            == KNOWLEDGE_TOOLS + WEB_TOOLS
        )

    def test_everything(self) -> None:
        registry = create_research_registry(
            notebook_id="notebook:abc",
            search_web=True,
            web_search_available=True,
            include_intents=True,
        )

        assert registry.list_names() == get_available_tool_names()
        assert registry.get("create_post_draft").category == "intent"  # type: ignore[attr-defined]

    def test_load_failure(self) -> None:
        """Test that a broken manifest entry raises ValueError."""
        broken = {
            "search_knowledge": {
                "class_path": "src.tools.knowledge.search_knowledge:MissingTool",
                "category": "knowledge",
                "description": "broken",
            }
        }

        with patch.dict(TOOL_MANIFEST, broken):
            with pytest.raises(ValueError, match="Failed to load tool 'search_knowledge'"):
                create_research_registry()
