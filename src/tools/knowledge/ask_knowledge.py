# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ask knowledge tool.

Asks the knowledge base a question and returns an answer synthesized from
several sources. The request's model overrides choose which models the
knowledge service uses for its strategy, answer and final-answer stages.
"""

import logging
from typing import Any

from src.core.tools import (
    BaseTool,
    KnowledgeAnswerResult,
    ToolContext,
    ToolFailure,
    ToolResult,
)

logger = logging.getLogger(__name__)


class AskKnowledgeTool(BaseTool):
    """Tool to get a synthesized answer from the knowledge base."""

    @property
    def name(self) -> str:
        return "ask_knowledge"

    @property
    def definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": "ask_knowledge",
                "description": (
                    "Ask a question to the knowledge base and receive a comprehensive "
                    "answer synthesized from multiple sources. Use this for complex "
                    "questions that require reasoning over multiple pieces of information."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "question": {
                            "type": "string",
                            "description": "The question to ask the knowledge base",
                        },
                    },
                    "required": ["question"],
                },
            },
        }

    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        question = str(params.get("question", "")).strip()
        overrides = context.model_config

        logger.info("Tool: ask_knowledge - question: %r", question[:50])

        try:
            response = await context.knowledge.ask(
                question,
                strategy_model=overrides.strategy_model if overrides else None,
                answer_model=overrides.answer_model if overrides else None,
                final_answer_model=overrides.final_answer_model if overrides else None,
            )
        except Exception as e:
            logger.error("ask_knowledge tool failed: %s", e)
            return ToolFailure(error="Failed to query knowledge base")

        return KnowledgeAnswerResult(
            question=response.question or question,
            answer=response.answer,
        )
