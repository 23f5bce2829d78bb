# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Research agent.

The ResearchAgent answers questions from the knowledge base. For every
request it builds a fresh tool registry and tool context, renders the
retrieval system prompt and runs the bounded tool-calling loop. The model
decides what to retrieve; the agent only collects what it found.

Entry points:
- research_query: single-shot, returns the final ResearchResponse
- research_query_stream: async stream of StreamChunk events
- execute_task: one-shot draft generation without tools

Usage:
    agent = ResearchAgent.from_settings()

    response = await agent.research_query(
        ResearchRequest(query="What is our pricing strategy?", notebook_id="notebook:abc")
    )

    async for chunk in agent.research_query_stream(request):
        print(chunk.to_json_line(), end="")
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Optional

from src.core.agents.context import (
    AgentError,
    AgentTask,
    AgentTaskType,
    ResearchRequest,
    ResearchResponse,
    ToolCallSummary,
)
from src.core.agents.loop import AgentLoop, AgentRunResult, StepCallback
from src.core.agents.prompt_builder import ResearchPromptBuilder
from src.core.agents.sources import extract_sources
from src.core.agents.stream import StreamChunk, bridge_agent_run
from src.core.config.settings import Settings, get_settings
from src.core.intelligence.llm.client import LLMClient
from src.core.intelligence.llm.errors import AIServiceError
from src.core.intelligence.llm.retry import RetryPolicy, with_error_handling
from src.core.intelligence.llm.router import ModelRouter, TaskType
from src.core.tools import KnowledgeService, ToolContext, ToolRegistry, WebSearchService
from src.infrastructure.knowledge import OpenNotebookClient
from src.infrastructure.web_search import TavilyClient
from src.tools import create_research_registry
from src.utils.logging import bound_context

logger = logging.getLogger(__name__)

AGENT_ID = "research"


def build_task_prompt(task: AgentTask) -> str:
    """Render the generation prompt for a draft task."""
    params = task.params
    match task.type:
        case AgentTaskType.CREATE_ARTICLE_DRAFT:
            return (
                "Create a blog article with the following requirements:\n"
                f"Title: {params.get('title') or 'Generate an appropriate title'}\n"
                f"Topic: {params.get('topic') or 'Based on context'}\n"
                f"Content guidelines: {params.get('guidelines') or 'Professional, informative, engaging'}\n\n"
                "Generate the full HTML content for the article body."
            )
        case AgentTaskType.CREATE_POST_DRAFT:
            return (
                "Create a social media post:\n"
                f"Platform: {params.get('platform') or 'Instagram'}\n"
                f"Topic: {params.get('topic') or 'Based on context'}\n"
                f"Tone: {params.get('tone') or 'Engaging and authentic'}\n\n"
                "Generate the caption with emojis and relevant hashtags."
            )
        case AgentTaskType.CREATE_MEDIA_DRAFT:
            return (
                "Generate a detailed image prompt:\n"
                f"Subject: {params.get('subject') or 'Based on context'}\n"
                f"Style: {params.get('style') or 'Modern, professional'}\n\n"
                "Create a detailed, specific prompt suitable for an image generation model."
            )
        case _:
            raise ValueError(f"Unknown task type: {task.type}")


@dataclass
class _PreparedRun:
    loop: AgentLoop
    system_prompt: str
    query: str
    registry: ToolRegistry
    context: ToolContext
    max_steps: int

    async def execute(self, on_step_finish: Optional[StepCallback] = None) -> AgentRunResult:
        return await self.loop.run(
            system_prompt=self.system_prompt,
            query=self.query,
            registry=self.registry,
            context=self.context,
            max_steps=self.max_steps,
            on_step_finish=on_step_finish,
        )


class ResearchAgent:
    """Agent that researches questions against the knowledge base.

    The agent holds only long-lived collaborators. Everything specific to
    one request (tools, notebook, model overrides) is built per call and
    passed down explicitly.
    """

    def __init__(
        self,
        knowledge: KnowledgeService,
        llm_client: Optional[LLMClient] = None,
        web_search: Optional[WebSearchService] = None,
        router: Optional[ModelRouter] = None,
        settings: Optional[Settings] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the research agent.

        Args:
            knowledge: Knowledge retrieval service.
            llm_client: Model client. Built from settings if None.
            web_search: Web search service; web tools are never offered without it.
            router: Task model presets. Built from settings if None.
            settings: Application settings. Uses get_settings() if None.
            retry_policy: Backoff policy for model calls.
        """
        self._settings = settings or get_settings()
        self._knowledge = knowledge
        self._web_search = web_search
        self._llm = llm_client or LLMClient(llm_settings=self._settings.llm)
        self._router = router or ModelRouter(llm_settings=self._settings.llm)
        self._retry_policy = retry_policy or RetryPolicy.from_settings(self._settings.retry)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ResearchAgent":
        """Create an agent wired to the configured knowledge and web services."""
        settings = settings or get_settings()
        return cls(
            knowledge=OpenNotebookClient.from_settings(settings.knowledge),
            web_search=TavilyClient.from_settings(settings.web_search),
            settings=settings,
        )

    def _prepare(self, request: ResearchRequest) -> _PreparedRun:
        registry = create_research_registry(
            notebook_id=request.notebook_id,
            search_web=request.search_web,
            web_search_available=self._web_search is not None,
            include_intents=request.include_intents,
        )
        context = ToolContext(
            knowledge=self._knowledge,
            web_search=self._web_search if request.search_web else None,
            notebook_id=request.notebook_id,
            channel_id=request.channel_id,
            model_config=request.knowledge_models,
        )
        system_prompt = ResearchPromptBuilder(registry.list_names()).build(
            notebook_id=request.notebook_id,
            history=request.history,
        )
        return _PreparedRun(
            loop=AgentLoop(
                self._llm,
                self._router.select_model(TaskType.AGENT),
                retry_policy=self._retry_policy,
            ),
            system_prompt=system_prompt,
            query=request.query,
            registry=registry,
            context=context,
            max_steps=request.max_steps or self._settings.research.default_max_steps,
        )

    async def research_query(self, request: ResearchRequest) -> ResearchResponse:
        """Answer a research query in one call.

        Args:
            request: The research request.

        Returns:
            Response text, extracted sources, tool calls and step count.

        Raises:
            AgentError: If the model call failed after retries or the
                configured deadline passed. original_error holds the cause.
        """
        deadline = self._settings.research.deadline_seconds

        with bound_context(request_id=uuid.uuid4().hex[:12], agent=AGENT_ID):
            logger.info("Research agent query: %r", request.query[:50])
            prepared = self._prepare(request)

            try:
                async with asyncio.timeout(deadline):
                    result = await prepared.execute()
            except AIServiceError as e:
                logger.error("Research query failed: %s", e)
                raise AgentError(str(e), agent_id=AGENT_ID, original_error=e) from e
            except TimeoutError as e:
                logger.error("Research query timed out after %ss", deadline)
                raise AgentError(
                    f"Research timed out after {deadline}s",
                    agent_id=AGENT_ID,
                    original_error=e,
                ) from e

        sources = extract_sources(result.tool_calls)
        tool_calls = [ToolCallSummary(**record.to_dict()) for record in result.tool_calls]

        return ResearchResponse(
            response=result.text,
            sources=sources or None,
            tool_calls=tool_calls or None,
            steps=result.steps,
        )

    def research_query_stream(self, request: ResearchRequest) -> AsyncIterator[StreamChunk]:
        """Stream a research query as events.

        The returned iterator ends with exactly one done or error event.
        Closing it early cancels the running research.

        Args:
            request: The research request.

        Returns:
            Async iterator of stream chunks.
        """
        request_id = uuid.uuid4().hex[:12]
        logger.info(
            "Research agent stream: %r verbose=%s (request_id=%s)",
            request.query[:50],
            request.verbose,
            request_id,
        )

        async def run(on_step_finish: StepCallback) -> AgentRunResult:
            with bound_context(request_id=request_id, agent=AGENT_ID):
                prepared = self._prepare(request)
                try:
                    return await prepared.execute(on_step_finish)
                except AIServiceError as e:
                    raise AgentError(str(e), agent_id=AGENT_ID, original_error=e) from e

        return bridge_agent_run(
            run,
            verbose=request.verbose,
            queue_size=self._settings.research.stream_queue_size,
            deadline_seconds=self._settings.research.deadline_seconds,
        )

    async def execute_task(self, task: AgentTask) -> dict[str, str]:
        """Generate a draft for a task without tools.

        Args:
            task: Task type and hints.

        Returns:
            {"type": task type, "result": generated text}

        Raises:
            AgentError: If generation failed after retries.
        """
        logger.info("Executing agent task: %s", task.type.value)
        prompt = build_task_prompt(task)
        params = self._router.select_model(TaskType.AGENT).completion_params()

        async def generate() -> str:
            response = await self._llm.complete(prompt, **params)
            return response.content

        try:
            text = await with_error_handling(
                generate,
                "execute_task",
                policy=self._retry_policy,
            )
        except AIServiceError as e:
            raise AgentError(str(e), agent_id=AGENT_ID, original_error=e) from e

        return {"type": task.type.value, "result": text}
