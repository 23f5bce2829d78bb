# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create media draft tool."""

import logging
from typing import Any

from src.core.tools import BaseTool, MediaDraftResult, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class CreateMediaDraftTool(BaseTool):
    """Tool to hand an image generation prompt to the client."""

    @property
    def name(self) -> str:
        return "create_media_draft"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "create_media_draft",
                "description": (
                    "Generate a new media/image asset based on a prompt. Use this when the "
                    "user explicitly asks to create an image, generate media, or create "
                    "visual content."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "prompt": {
                            "type": "string",
                            "description": "A detailed prompt for the image generator",
                        },
                    },
                    "required": ["prompt"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        prompt = str(params["prompt"])
        logger.info("Creating media draft with prompt: %r", prompt[:50])
        return MediaDraftResult(prompt=prompt)
