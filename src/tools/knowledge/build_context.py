# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Build context tool.

Fetches the full context of the request's notebook for a comprehensive
overview when targeted searches are not enough.
"""

import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    NotebookContextResult,
    ToolContext,
    ToolFailure,
    ToolResult,
)

logger = logging.getLogger(__name__)


class BuildContextTool(BaseTool):
    """Tool to retrieve the full notebook context."""

    @property
    def name(self) -> str:
        return "build_context"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "build_context",
                "description": (
                    "Get the full context of the notebook for a comprehensive overview "
                    "of everything it contains. Requires a notebook."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {},
                    "required": [],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        if not context.notebook_id:
            return ToolFailure(error="build_context requires a notebook id")

        logger.info("Tool: build_context - notebook: %s", context.notebook_id)

        try:
            notebook = await context.knowledge.build_context(context.notebook_id)
        except Exception as e:
            logger.error("build_context tool failed: %s", e)
            return ToolFailure(error="Failed to build notebook context")

        return NotebookContextResult(
            context=notebook.context,
            token_count=notebook.token_count,
            char_count=notebook.char_count,
        )
