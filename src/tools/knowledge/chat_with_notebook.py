# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat with notebook tool.

Multi-turn conversation with the notebook assistant. The first call opens
a chat session; later calls pass the returned session id to continue the
same conversation and dig deeper into a topic.
"""

import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    NotebookChatResult,
    ToolContext,
    ToolFailure,
    ToolResult,
)

logger = logging.getLogger(__name__)

SESSION_TITLE = "Research agent"


class ChatWithNotebookTool(BaseTool):
    """Tool for multi-turn exploration of a notebook.

    Requires a notebook id in the tool context.
    """

    @property
    def name(self) -> str:
        return "chat_with_notebook"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "chat_with_notebook",
                "description": (
                    "Have a multi-turn conversation with the notebook to explore a topic "
                    "in depth. Pass the session_id returned by a previous call to continue "
                    "the same conversation. Requires a notebook."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "message": {
                            "type": "string",
                            "description": "The message to send to the notebook",
                        },
                        "session_id": {
                            "type": "string",
                            "description": "Session id from a previous call, to continue it",
                        },
                    },
                    "required": ["message"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        message = str(params.get("message", "")).strip()
        session_id = params.get("session_id")

        if not context.notebook_id:
            return ToolFailure(error="chat_with_notebook requires a notebook id")

        logger.info("Tool: chat_with_notebook - message: %r", message[:50])

        overrides = context.model_config
        model_override = overrides.answer_model if overrides else None

        try:
            if not session_id:
                session = await context.knowledge.create_chat_session(
                    context.notebook_id,
                    title=SESSION_TITLE,
                    model_override=model_override,
                )
                session_id = session.id

            response = await context.knowledge.execute_chat(
                session_id,
                message,
                model_override=model_override,
            )
        except Exception as e:
            logger.error("chat_with_notebook tool failed: %s", e)
            return ToolFailure(error="Failed to chat with notebook")

        return NotebookChatResult(
            session_id=response.session_id or session_id,
            response=response.last_reply,
        )
