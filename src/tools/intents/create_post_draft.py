# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create post draft tool.

Intent tool for a social media post caption, optionally aimed at one
platform.
"""

import logging
from typing import Any

from src.core.tools import BaseTool, PostDraftResult, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class CreatePostDraftTool(BaseTool):
    """Tool to materialize a social media post draft."""

    @property
    def name(self) -> str:
        return "create_post_draft"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "create_post_draft",
                "description": (
                    "Create a new social media post draft. Use this when the user "
                    "explicitly asks to create a social media post, Instagram post, "
                    "LinkedIn post, or Twitter/X post."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "caption": {
                            "type": "string",
                            "description": "The post caption with emojis and hashtags",
                        },
                        "platform": {
                            "type": "string",
                            "description": (
                                "The target platform (e.g., Instagram, LinkedIn, Twitter)"
                            ),
                        },
                    },
                    "required": ["caption"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        platform = params.get("platform") or None
        logger.info("Creating post draft for platform: %s", platform or "unspecified")
        return PostDraftResult(caption=str(params["caption"]), platform=platform)
