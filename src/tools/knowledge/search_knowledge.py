# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Search knowledge tool.

Searches the knowledge base for chunks relevant to a query. This is the
first tool the research agent reaches for: vector search for semantic
matches, text search for exact keywords.
"""

import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    KnowledgeSearchResult,
    ToolContext,
    ToolFailure,
    ToolResult,
)

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("vector", "text")
DEFAULT_LIMIT = 5
DEFAULT_MINIMUM_SCORE = 0.3


async def search_knowledge_base(
    context: ToolContext,
    query: str,
    search_type: str = "vector",
    limit: int = DEFAULT_LIMIT,
    minimum_score: float = DEFAULT_MINIMUM_SCORE,
) -> KnowledgeSearchResult:
    """Run one search against the knowledge service.

    Args:
        context: Tool context holding the knowledge service and notebook id.
        query: Search text.
        search_type: "vector" or "text".
        limit: Maximum number of results.
        minimum_score: Minimum relevance score.

    Returns:
        KnowledgeSearchResult for the query.
    """
    response = await context.knowledge.search(
        query,
        search_type=search_type,  # type: ignore[arg-type]
        limit=limit,
        minimum_score=minimum_score,
        notebook_id=context.notebook_id,
    )
    return KnowledgeSearchResult(
        query=query,
        results=list(response.results),
        total_count=response.total_count,
    )


class SearchKnowledgeTool(BaseTool):
    """Tool to search the knowledge base.

    Results carry the source id, name, score and position metadata the
    agent needs to cite them.
    """

    @property
    def name(self) -> str:
        return "search_knowledge"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "search_knowledge",
                "description": (
                    "Search the knowledge base for relevant information. Use this when "
                    "you need to find specific content, facts, or context from the "
                    "stored knowledge sources."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "The search query to find relevant knowledge",
                        },
                        "type": {
                            "type": "string",
                            "enum": list(SEARCH_TYPES),
                            "default": "vector",
                            "description": "Search type: vector for semantic, text for keyword",
                        },
                        "limit": {
                            "type": "integer",
                            "default": DEFAULT_LIMIT,
                            "description": "Maximum number of results to return",
                        },
                        "minimum_score": {
                            "type": "number",
                            "default": DEFAULT_MINIMUM_SCORE,
                            "description": "Minimum relevance score (0-1)",
                        },
                    },
                    "required": ["query"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute the search_knowledge tool.

        Args:
            params: Tool parameters from the model.
                - query: Search query text
                - type: Optional "vector" (default) or "text"
                - limit: Optional max results (default 5)
                - minimum_score: Optional score threshold (default 0.3)
            context: Execution context with the knowledge service.

        Returns:
            KnowledgeSearchResult, or ToolFailure if the search failed.
        """
        query = str(params.get("query", "")).strip()
        search_type = params.get("type") or "vector"
        if search_type not in SEARCH_TYPES:
            search_type = "vector"
        limit = int(params.get("limit") or DEFAULT_LIMIT)
        minimum_score = float(params.get("minimum_score", DEFAULT_MINIMUM_SCORE))

        logger.info("Tool: search_knowledge - query: %r", query[:50])

        try:
            return await search_knowledge_base(
                context,
                query,
                search_type=search_type,
                limit=limit,
                minimum_score=minimum_score,
            )
        except Exception as e:
            logger.error("search_knowledge tool failed: %s", e)
            return ToolFailure(error="Failed to search knowledge base")
