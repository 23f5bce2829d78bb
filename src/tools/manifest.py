# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Central tool manifest for the research agent.

This is the SINGLE source of truth for tool registrations. Each entry
contains metadata used when building the per-request tool set.

To add a new tool:
1. Create the tool class in the appropriate category folder (e.g., src/tools/knowledge/)
2. Add an entry to TOOL_MANIFEST below
3. If it needs a new category, teach create_research_registry() when to offer it

The manifest uses a rich format with metadata:
- class_path: Fully qualified path to the tool class
- category: knowledge, notebook, web or intent
- description: Human-readable description
"""

from typing import TypedDict


class ToolInfo(TypedDict):
    """Information about a registered tool."""

    class_path: str  # Fully qualified class path (module.path:ClassName)
    category: str  # Tool category (knowledge, notebook, web, intent)
    description: str  # Human-readable description


TOOL_MANIFEST: dict[str, ToolInfo] = {
    # =========================================================================
    # KNOWLEDGE TOOLS
    # Always offered. Search and Q&A over the knowledge base.
    # =========================================================================
    "search_knowledge": {
        "class_path": "src.tools.knowledge.search_knowledge:SearchKnowledgeTool",
        "category": "knowledge",
        "description": "Vector or keyword search over the knowledge base.",
    },
    "ask_knowledge": {
        "class_path": "src.tools.knowledge.ask_knowledge:AskKnowledgeTool",
        "category": "knowledge",
        "description": "Answer synthesized from multiple knowledge sources.",
    },
    "search_multiple": {
        "class_path": "src.tools.knowledge.search_multiple:SearchMultipleTool",
        "category": "knowledge",
        "description": "Up to five knowledge base searches in parallel.",
    },
    # =========================================================================
    # NOTEBOOK TOOLS
    # Offered only when the request names a notebook.
    # =========================================================================
    "chat_with_notebook": {
        "class_path": "src.tools.knowledge.chat_with_notebook:ChatWithNotebookTool",
        "category": "notebook",
        "description": "Multi-turn conversation with the notebook for depth.",
    },
    "build_context": {
        "class_path": "src.tools.knowledge.build_context:BuildContextTool",
        "category": "notebook",
        "description": "Full notebook context for a comprehensive overview.",
    },
    # =========================================================================
    # WEB TOOLS
    # Offered when the request enables web search and a provider is configured.
    # =========================================================================
    "web_search": {
        "class_path": "src.tools.web.web_search:WebSearchTool",
        "category": "web",
        "description": "Web search for current information (max 10 results).",
    },
    "web_search_multiple": {
        "class_path": "src.tools.web.web_search_multiple:WebSearchMultipleTool",
        "category": "web",
        "description": "Up to five web searches in parallel.",
    },
    # =========================================================================
    # INTENT TOOLS
    # Offered when the client can open editors from draft results.
    # =========================================================================
    "create_article_draft": {
        "class_path": "src.tools.intents.create_article_draft:CreateArticleDraftTool",
        "category": "intent",
        "description": "Open the article editor with a generated draft.",
    },
    "create_post_draft": {
        "class_path": "src.tools.intents.create_post_draft:CreatePostDraftTool",
        "category": "intent",
        "description": "Open the post editor with a generated caption.",
    },
    "create_media_draft": {
        "class_path": "src.tools.intents.create_media_draft:CreateMediaDraftTool",
        "category": "intent",
        "description": "Start media generation from a prompt.",
    },
}


def get_available_tool_names() -> list[str]:
    """Get list of all available tool names."""
    return list(TOOL_MANIFEST.keys())


def get_tool_info(tool_name: str) -> ToolInfo | None:
    """Get information about a specific tool.

    Args:
        tool_name: Name of the tool.

    Returns:
        ToolInfo dict or None if tool not found.
    """
    return TOOL_MANIFEST.get(tool_name)


def get_tools_by_category(category: str) -> list[str]:
    """Get all tool names in a category, in manifest order."""
    return [name for name, info in TOOL_MANIFEST.items() if info["category"] == category]
