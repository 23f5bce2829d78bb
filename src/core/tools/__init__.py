# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core tool infrastructure for model tool calling.

Base Classes:
    BaseTool: Abstract base class for all tools
    ToolContext: Request-scoped context passed to every tool
    ToolCallRecord: One executed tool invocation

Results:
    ToolResult and its capability-specific subclasses, plus ToolFailure

Services:
    KnowledgeService, WebSearchService: protocols the tools call

Registry:
    ToolRegistry: Per-request set of tools offered to the model

Usage:
    from src.core.tools import BaseTool, ToolContext, ToolFailure

    class MyTool(BaseTool):
        async def execute(self, params, context):
            return ToolFailure(error="not implemented")
"""

from src.core.tools.base import BaseTool, ToolCallRecord, ToolContext
from src.core.tools.registry import ToolRegistry
from src.core.tools.results import (
    ArticleDraftResult,
    KnowledgeAnswerResult,
    KnowledgeSearchResult,
    MediaDraftResult,
    MultiSearchResult,
    MultiWebSearchResult,
    NotebookChatResult,
    NotebookContextResult,
    PostDraftResult,
    ToolFailure,
    ToolResult,
    WebSearchResult,
)
from src.core.tools.services import (
    AskResponse,
    ChatResponse,
    ChatSession,
    ChatTurn,
    KnowledgeService,
    NotebookContext,
    SearchHit,
    SearchResponse,
    SearchType,
    WebHit,
    WebSearchResponse,
    WebSearchService,
)

__all__ = [
    # Base classes
    "BaseTool",
    "ToolCallRecord",
    "ToolContext",
    # Registry
    "ToolRegistry",
    # Results
    "ArticleDraftResult",
    "KnowledgeAnswerResult",
    "KnowledgeSearchResult",
    "MediaDraftResult",
    "MultiSearchResult",
    "MultiWebSearchResult",
    "NotebookChatResult",
    "NotebookContextResult",
    "PostDraftResult",
    "ToolFailure",
    "ToolResult",
    "WebSearchResult",
    # Services
    "AskResponse",
    "ChatResponse",
    "ChatSession",
    "ChatTurn",
    "KnowledgeService",
    "NotebookContext",
    "SearchHit",
    "SearchResponse",
    "SearchType",
    "WebHit",
    "WebSearchResponse",
    "WebSearchService",
]
