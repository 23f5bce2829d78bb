# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Web search multiple tool.

Runs up to five web searches in parallel for broad coverage of a topic.
"""

import asyncio
import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    MultiWebSearchResult,
    ToolContext,
    ToolFailure,
    ToolResult,
    WebSearchResult,
)
from src.tools.web.web_search import NOT_CONFIGURED_ERROR, error_message

logger = logging.getLogger(__name__)

MAX_QUERIES = 5
DEFAULT_RESULTS_PER_QUERY = 3
RESULTS_PER_QUERY_CAP = 5


class WebSearchMultipleTool(BaseTool):
    """Tool to search the web for several queries at once."""

    @property
    def name(self) -> str:
        return "web_search_multiple"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "web_search_multiple",
                "description": (
                    "Run several web searches in parallel (max 5 queries). Use this to "
                    "gather current information on multiple aspects of a topic at once."
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
                        "max_results_per_query": {
                            "type": "integer",
                            "default": DEFAULT_RESULTS_PER_QUERY,
                            "description": "Maximum results per query (max 5)",
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
        web_search = context.web_search
        if web_search is None:
            return ToolFailure(error=NOT_CONFIGURED_ERROR)

        queries = [q.strip() for q in params.get("queries", [])]
        per_query = min(
            int(params.get("max_results_per_query") or DEFAULT_RESULTS_PER_QUERY),
            RESULTS_PER_QUERY_CAP,
        )

        logger.info("Tool: web_search_multiple - %d queries", len(queries))

        try:
            responses = await asyncio.gather(
                *(web_search.search(query, max_results=per_query) for query in queries)
            )
        except Exception as e:
            logger.error("web_search_multiple tool failed: %s", e)
            return ToolFailure(error=error_message(e, "Failed to execute multiple web searches"))

        return MultiWebSearchResult(
            searches=[
                WebSearchResult(query=query, results=list(response.results))
                for query, response in zip(queries, responses)
            ]
        )
