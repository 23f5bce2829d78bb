# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bounded tool-calling loop.

AgentLoop drives a model through at most max_steps generation steps. Each
step is one model call; when the model requests tools they are executed in
order through the registry and their results are appended to the
conversation for the next step.

The loop ends when the model answers without tool calls or when max_steps
steps have run. Reaching the bound is not an error: the text produced so
far is returned.

Example:
    loop = AgentLoop(llm_client, router.select_model(TaskType.AGENT))
    result = await loop.run(
        system_prompt=prompt,
        query="What is our pricing strategy?",
        registry=registry,
        context=tool_context,
        max_steps=10,
    )
    print(result.text, len(result.tool_calls), result.steps)
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.intelligence.llm.client import LLMClient, LLMToolResponse
from src.core.intelligence.llm.retry import RetryPolicy, with_error_handling
from src.core.intelligence.llm.router import ModelConfig
from src.core.tools import ToolCallRecord, ToolContext, ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of one generation step.

    Attributes:
        step: 1-based step number.
        text: Text the model produced in this step (may be empty).
        tool_calls: Tools executed in this step, in request order.
    """

    step: int
    text: str
    tool_calls: list[ToolCallRecord] = field(default_factory=list)


@dataclass
class AgentRunResult:
    """Outcome of a complete loop run.

    Attributes:
        text: Non-empty step texts joined with blank lines.
        tool_calls: Every executed tool call, in execution order.
        steps: Number of model calls made.
    """

    text: str
    tool_calls: list[ToolCallRecord]
    steps: int


StepCallback = Callable[[StepResult], Awaitable[None]]


class AgentLoop:
    """Runs the bounded generate/execute-tools cycle.

    Attributes:
        model_config: Model, sampling and thinking parameters for every step.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        model_config: ModelConfig,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the loop.

        Args:
            llm_client: Client used for tool-calling completions.
            model_config: Model parameters for every step.
            retry_policy: Backoff policy for model calls. Defaults to settings.
        """
        self._llm = llm_client
        self.model_config = model_config
        self._retry_policy = retry_policy

    async def _generate(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        step: int,
    ) -> LLMToolResponse:
        snapshot = list(messages)
        params = self.model_config.completion_params()

        async def attempt() -> LLMToolResponse:
            return await self._llm.complete_with_tools(
                messages=snapshot,
                tools=tools,
                **params,
            )

        return await with_error_handling(
            attempt,
            f"research step {step}",
            policy=self._retry_policy,
        )

    def _tool_message(self, record: ToolCallRecord) -> dict[str, Any]:
        message: dict[str, Any] = {
            "role": "tool",
            "tool_call_id": record.id,
            "content": record.result.to_llm_message(),
        }
        # Gemini rejects a name field on tool messages
        if not self.model_config.model.startswith("gemini/"):
            message["name"] = record.name
        return message

    async def run(
        self,
        system_prompt: str,
        query: str,
        registry: ToolRegistry,
        context: ToolContext,
        max_steps: int,
        on_step_finish: Optional[StepCallback] = None,
    ) -> AgentRunResult:
        """Run the loop.

        Args:
            system_prompt: System prompt for the model.
            query: User query.
            registry: Tools offered to the model.
            context: Request-scoped context passed to every tool.
            max_steps: Maximum number of model calls.
            on_step_finish: Awaited after every step with its result.

        Returns:
            Accumulated text, executed tool calls and step count.

        Raises:
            ValueError: If max_steps is less than 1.
            AIServiceError: If a model call fails after the retry policy.
        """
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": query},
        ]
        tools = registry.get_definitions()
        texts: list[str] = []
        all_tool_calls: list[ToolCallRecord] = []
        start = time.monotonic()
        steps = 0

        while steps < max_steps:
            steps += 1
            logger.debug("Research step %d/%d: messages=%d", steps, max_steps, len(messages))

            response = await self._generate(messages, tools, steps)
            text = response.content or ""
            if text.strip():
                texts.append(text)

            step_records: list[ToolCallRecord] = []
            if response.has_tool_calls:
                logger.info("Model requested tools: %s", [tc.name for tc in response.tool_calls])
                messages.append(
                    {
                        "role": "assistant",
                        "content": text,
                        "tool_calls": [tc.to_message_dict() for tc in response.tool_calls],
                    }
                )
                for tool_call in response.tool_calls:
                    result = await registry.execute(tool_call.name, tool_call.arguments, context)
                    record = ToolCallRecord(
                        id=tool_call.id,
                        name=tool_call.name,
                        arguments=tool_call.arguments,
                        result=result,
                    )
                    step_records.append(record)
                    messages.append(self._tool_message(record))
                all_tool_calls.extend(step_records)

            if on_step_finish is not None:
                await on_step_finish(StepResult(step=steps, text=text, tool_calls=step_records))

            if not response.has_tool_calls:
                break
        else:
            logger.info("Research loop reached max_steps=%d", max_steps)

        logger.info(
            "Research loop completed: steps=%d, tool_calls=%d, duration_ms=%.0f",
            steps,
            len(all_tool_calls),
            (time.monotonic() - start) * 1000,
        )

        return AgentRunResult(
            text="\n\n".join(texts),
            tool_calls=all_tool_calls,
            steps=steps,
        )
