# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Search multiple tool.

Runs several knowledge base searches in parallel. Useful for comparing
topics or covering several angles of a question in one step.
"""

import asyncio
import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    MultiSearchResult,
    ToolContext,
    ToolFailure,
    ToolResult,
)
from src.tools.knowledge.search_knowledge import (
    DEFAULT_MINIMUM_SCORE,
    SEARCH_TYPES,
    search_knowledge_base,
)

logger = logging.getLogger(__name__)

MAX_QUERIES = 5
DEFAULT_LIMIT_PER_QUERY = 3


class SearchMultipleTool(BaseTool):
    """Tool to search the knowledge base for several queries at once."""

    @property
    def name(self) -> str:
        return "search_multiple"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "search_multiple",
                "description": (
                    "Search the knowledge base with several queries in parallel (max 5). "
                    "Use this when comparing multiple topics or gathering information "
                    "on different aspects of a question at once."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "queries": {
                            "type": "array",
                            "items": {"type": "string"},
                            "minItems": 1,
                            "maxItems": MAX_QUERIES,
                            "description": "Search queries to execute (max 5)",
                        },
                        "type": {
                            "type": "string",
                            "enum": list(SEARCH_TYPES),
                            "default": "vector",
                            "description": "Search type: vector for semantic, text for keyword",
                        },
                        "limit_per_query": {
                            "type": "integer",
                            "default": DEFAULT_LIMIT_PER_QUERY,
                            "description": "Maximum number of results per query",
                        },
                    },
                    "required": ["queries"],
                },
            },
        }

    def validate_params(self, params: dict[str, Any]) -> None:
        super().validate_params(params)
        queries = params["queries"]
        if not isinstance(queries, list) or not all(isinstance(q, str) for q in queries):
            raise ValueError("queries must be a list of strings")
        if len(queries) > MAX_QUERIES:
            raise ValueError(f"At most {MAX_QUERIES} queries are allowed")

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute the search_multiple tool.

        Args:
            params: Tool parameters from the model.
                - queries: 1 to 5 search queries
                - type: Optional "vector" (default) or "text"
                - limit_per_query: Optional max results per query (default 3)
            context: Execution context with the knowledge service.

        Returns:
            MultiSearchResult in query order, or ToolFailure if any search failed.
        """
        queries = [q.strip() for q in params.get("queries", [])]
        search_type = params.get("type") or "vector"
        if search_type not in SEARCH_TYPES:
            search_type = "vector"
        limit = int(params.get("limit_per_query") or DEFAULT_LIMIT_PER_QUERY)

        logger.info("Tool: search_multiple - %d queries", len(queries))

        try:
            searches = await asyncio.gather(
                *(
                    search_knowledge_base(
                        context,
                        query,
                        search_type=search_type,
                        limit=limit,
                        minimum_score=DEFAULT_MINIMUM_SCORE,
                    )
                    for query in queries
                )
            )
        except Exception as e:
            logger.error("search_multiple tool failed: %s", e)
            return ToolFailure(error="Failed to search knowledge base")

        return MultiSearchResult(searches=list(searches))
