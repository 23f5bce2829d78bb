# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create article draft tool.

Intent tool: calls no service. The structured result tells the client to
open the article editor prefilled with the generated title and HTML body.
"""

import logging
from typing import Any

from src.core.tools import ArticleDraftResult, BaseTool, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class CreateArticleDraftTool(BaseTool):
    """Tool to materialize a blog article draft."""

    @property
    def name(self) -> str:
        return "create_article_draft"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "create_article_draft",
                "description": (
                    "Create a new blog article draft based on the research content. Use "
                    "this when the user explicitly asks to create an article, blog post, "
                    "or written content."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "The title of the article",
                        },
                        "content": {
                            "type": "string",
                            "description": "The HTML content of the article body",
                        },
                    },
                    "required": ["title", "content"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        title = str(params["title"])
        logger.info("Creating article draft: %r", title[:50])
        return ArticleDraftResult(title=title, content=str(params["content"]))
