# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Web search tool.

Searches the web for current events, recent developments, or anything the
knowledge base does not cover. Only offered when the request enables web
search and a web search service is configured.
"""

import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    ToolContext,
    ToolFailure,
    ToolResult,
    WebSearchResult,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5
MAX_RESULTS_CAP = 10
NOT_CONFIGURED_ERROR = "Web search is not configured"


def error_message(error: Exception, default: str) -> str:
    """Message of a web search failure, or a default when it has none."""
    return str(error) or default


class WebSearchTool(BaseTool):
    """Tool to search the web for one query."""

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "web_search",
                "description": (
                    "Search the web for current information, news, or topics not covered "
                    "by the knowledge base. Use this for recent events or to complement "
                    "knowledge base findings."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "The search query to find information on the web",
                        },
                        "max_results": {
                            "type": "integer",
                            "default": DEFAULT_MAX_RESULTS,
                            "description": "Maximum number of results to return (max 10)",
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
        """Execute the web_search tool.

        Args:
            params: Tool parameters from the model.
                - query: Search query text
                - max_results: Optional max results (default 5, capped at 10)
            context: Execution context with the web search service.

        Returns:
            WebSearchResult, or ToolFailure if web search is unavailable or failed.
        """
        if context.web_search is None:
            return ToolFailure(error=NOT_CONFIGURED_ERROR)

        query = str(params.get("query", "")).strip()
        max_results = min(int(params.get("max_results") or DEFAULT_MAX_RESULTS), MAX_RESULTS_CAP)

        logger.info("Tool: web_search - query: %r", query[:50])

        try:
            response = await context.web_search.search(query, max_results=max_results)
        except Exception as e:
            logger.error("web_search tool failed: %s", e)
            return ToolFailure(error=error_message(e, "Failed to search the web"))

        return WebSearchResult(query=query, results=list(response.results))
