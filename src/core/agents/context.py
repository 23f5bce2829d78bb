# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Research request and response models.

This module provides:
- ChatMessage: One turn of prior conversation
- KnowledgeModelConfig: Model overrides for knowledge Q&A
- ResearchRequest: Input of a research run (single-shot or streaming)
- ResearchResponse: Output of a single-shot research run
- AgentTask: A one-shot draft generation task
- AgentError: Exception raised by the research agent

Wire names are camelCase (channelId, maxSteps, toolCalls, ...); Python
attributes are snake_case. Models accept either form on input.

Usage:
    request = ResearchRequest.model_validate({
        "query": "What is our pricing strategy?",
        "notebookId": "notebook:abc",
        "verbose": True,
    })

    response = await agent.research_query(request)
    payload = response.model_dump(by_alias=True, exclude_none=True)
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.core.agents.sources import SourceReference


class ChatMessage(BaseModel):
    """A prior conversation turn.

    Attributes:
        role: Who wrote the message.
        text: Message text.
    """

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    text: str


class KnowledgeModelConfig(BaseModel):
    """Model overrides for the knowledge service's Q&A stages.

    Values are model names; the knowledge client resolves them to the
    service's model ids. Unset stages use the service default.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    strategy_model: str | None = Field(default=None, alias="strategyModel")
    answer_model: str | None = Field(default=None, alias="answerModel")
    final_answer_model: str | None = Field(default=None, alias="finalAnswerModel")


class ResearchRequest(BaseModel):
    """Input of one research run.

    Attributes:
        query: The user's question.
        channel_id: Publishing channel the request belongs to.
        notebook_id: Notebook to scope notebook tools to.
        history: Prior conversation, oldest first.
        max_steps: Step bound. Uses the configured default when unset.
        verbose: Stream tool_start/tool_result events.
        search_web: Offer web search tools, if a provider is configured.
        knowledge_models: Model overrides for knowledge Q&A.
        include_intents: Offer the draft intent tools.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = Field(..., min_length=1)
    channel_id: str | None = Field(default=None, alias="channelId")
    notebook_id: str | None = Field(default=None, alias="notebookId")
    history: tuple[ChatMessage, ...] = ()
    max_steps: int | None = Field(default=None, ge=1, alias="maxSteps")
    verbose: bool = False
    search_web: bool = Field(default=False, alias="searchWeb")
    knowledge_models: KnowledgeModelConfig | None = Field(default=None, alias="modelConfig")
    include_intents: bool = Field(default=False, alias="includeIntents")


class ToolCallSummary(BaseModel):
    """A tool call as reported in a single-shot response."""

    name: str
    result: dict[str, Any]


class ResearchResponse(BaseModel):
    """Output of a single-shot research run.

    Attributes:
        response: Concatenated text of all steps.
        sources: Extracted references, or None when there are none.
        tool_calls: Every executed tool call, or None when there were none.
        steps: Number of model steps taken.
    """

    model_config = ConfigDict(populate_by_name=True)

    response: str
    sources: list[SourceReference] | None = None
    tool_calls: list[ToolCallSummary] | None = Field(default=None, alias="toolCalls")
    steps: int = 0


class AgentTaskType(str, Enum):
    """Draft generation task types."""

    CREATE_ARTICLE_DRAFT = "create_article_draft"
    CREATE_POST_DRAFT = "create_post_draft"
    CREATE_MEDIA_DRAFT = "create_media_draft"


class AgentTask(BaseModel):
    """A one-shot draft generation task.

    Attributes:
        type: Which kind of draft to generate.
        params: Free-form hints (title, topic, guidelines, platform, tone,
            subject, style).
    """

    type: AgentTaskType
    params: dict[str, Any] = Field(default_factory=dict)


class AgentError(Exception):
    """Exception raised for research agent errors.

    Attributes:
        message: Error description.
        agent_id: Agent that raised the error.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        agent_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.agent_id = agent_id
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.agent_id:
            return f"[{self.agent_id}] {self.message}"
        return self.message
