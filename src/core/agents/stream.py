# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Streaming events for research runs.

This module provides:
- StreamChunk: discriminated union of the wire events (status, tool_start,
  tool_result, delta, sources, done, error)
- bridge_agent_run: turns a callback-driven loop run into an ordered
  async stream of events
- encode_ndjson: renders a stream as newline-delimited JSON

The bridge runs the loop in a producer task that puts events on a bounded
asyncio.Queue; the consumer drains it in FIFO order. Every stream ends
with exactly one terminal event (done or error) and nothing follows it.
When the consumer stops iterating, the producer task is cancelled.

Example:
    async for chunk in bridge_agent_run(run, verbose=True):
        await response.write(chunk.to_json_line().encode())
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.core.agents.context import AgentError
from src.core.agents.loop import AgentRunResult, StepCallback, StepResult
from src.core.agents.sources import SourceReference, extract_sources
from src.core.intelligence.llm.errors import ContentFilterError

logger = logging.getLogger(__name__)

STARTING_STATUS = "Starting research..."
SEARCHING_STATUS = "Searching knowledge base..."
UNKNOWN_ERROR = "Unknown error occurred"
CONTENT_FILTERED_MESSAGE = (
    "The response was blocked by the content safety filter. Please rephrase your request."
)


class _Chunk(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def is_terminal(self) -> bool:
        return False

    def to_wire(self) -> dict[str, Any]:
        """Render with camelCase names, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json_line(self) -> str:
        """Render as one NDJSON line, newline included."""
        return json.dumps(self.to_wire(), ensure_ascii=False) + "\n"


class StatusChunk(_Chunk):
    type: Literal["status"] = "status"
    status: str


class ToolStartChunk(_Chunk):
    type: Literal["tool_start"] = "tool_start"
    tool: str
    tool_input: dict[str, Any] = Field(alias="toolInput")
    status: str


class ToolResultChunk(_Chunk):
    type: Literal["tool_result"] = "tool_result"
    tool: str
    tool_input: dict[str, Any] = Field(alias="toolInput")
    tool_result: dict[str, Any] = Field(alias="toolResult")


class DeltaChunk(_Chunk):
    type: Literal["delta"] = "delta"
    content: str


class SourcesChunk(_Chunk):
    type: Literal["sources"] = "sources"
    sources: list[SourceReference]


class DoneChunk(_Chunk):
    type: Literal["done"] = "done"
    response: str
    sources: Optional[list[SourceReference]] = None
    steps: int

    @property
    def is_terminal(self) -> bool:
        return True


class ErrorChunk(_Chunk):
    type: Literal["error"] = "error"
    error: str

    @property
    def is_terminal(self) -> bool:
        return True


StreamChunk = Annotated[
    Union[
        StatusChunk,
        ToolStartChunk,
        ToolResultChunk,
        DeltaChunk,
        SourcesChunk,
        DoneChunk,
        ErrorChunk,
    ],
    Field(discriminator="type"),
]

_stream_chunk_adapter: TypeAdapter[StreamChunk] = TypeAdapter(StreamChunk)


def parse_chunk(line: str) -> StreamChunk:
    """Parse one NDJSON line back into a chunk."""
    return _stream_chunk_adapter.validate_json(line)


def error_message(error: BaseException) -> str:
    """User-facing message for a failed research run."""
    cause = error.original_error if isinstance(error, AgentError) else error
    if isinstance(cause, ContentFilterError):
        return CONTENT_FILTERED_MESSAGE
    if isinstance(cause, TimeoutError):
        return "Research timed out"
    return str(error) or UNKNOWN_ERROR


def step_events(step: StepResult, verbose: bool) -> list[_Chunk]:
    """Events for one finished step, in emission order."""
    events: list[_Chunk] = []
    if verbose:
        for record in step.tool_calls:
            events.append(
                ToolStartChunk(
                    tool=record.name,
                    tool_input=record.arguments,
                    status=f"Called {record.name}",
                )
            )
            events.append(
                ToolResultChunk(
                    tool=record.name,
                    tool_input=record.arguments,
                    tool_result=record.result.to_payload(),
                )
            )
    if step.text.strip():
        events.append(DeltaChunk(content=step.text))
    return events


@dataclass(frozen=True)
class _Outcome:
    result: Optional[AgentRunResult] = None
    error: Optional[Exception] = None


async def bridge_agent_run(
    run: Callable[[StepCallback], Awaitable[AgentRunResult]],
    *,
    verbose: bool = False,
    queue_size: int = 64,
    deadline_seconds: Optional[float] = None,
) -> AsyncIterator[StreamChunk]:
    """Stream the events of one loop run.

    Args:
        run: Starts the loop with the given step callback.
        verbose: Emit tool_start/tool_result pairs for every tool call.
        queue_size: Capacity of the event queue. A full queue suspends the
            producer until the consumer catches up.
        deadline_seconds: Optional wall-clock bound for the run.

    Yields:
        Status events, step events in production order, an optional
        sources event and exactly one terminal event.
    """
    yield StatusChunk(status=STARTING_STATUS)

    queue: asyncio.Queue[Union[_Chunk, _Outcome]] = asyncio.Queue(maxsize=queue_size)

    async def on_step_finish(step: StepResult) -> None:
        for event in step_events(step, verbose):
            await queue.put(event)

    async def produce() -> None:
        try:
            async with asyncio.timeout(deadline_seconds):
                result = await run(on_step_finish)
        except Exception as e:
            await queue.put(_Outcome(error=e))
        else:
            await queue.put(_Outcome(result=result))

    yield StatusChunk(status=SEARCHING_STATUS)

    producer = asyncio.create_task(produce())
    try:
        while True:
            item = await queue.get()
            if isinstance(item, _Outcome):
                outcome = item
                break
            yield item  # type: ignore[misc]
    finally:
        if not producer.done():
            logger.info("Research stream closed early, cancelling the agent run")
            producer.cancel()
        await asyncio.gather(producer, return_exceptions=True)

    result = outcome.result
    if outcome.error is not None or result is None:
        logger.error("Research stream error: %s", outcome.error)
        yield ErrorChunk(error=error_message(outcome.error) if outcome.error else UNKNOWN_ERROR)
        return

    sources = extract_sources(result.tool_calls)
    if sources:
        yield SourcesChunk(sources=sources)

    yield DoneChunk(response=result.text, sources=sources or None, steps=result.steps)


async def encode_ndjson(chunks: AsyncIterator[StreamChunk]) -> AsyncIterator[bytes]:
    """Encode a chunk stream as UTF-8 NDJSON lines for an HTTP transport."""
    async for chunk in chunks:
        yield chunk.to_json_line().encode("utf-8")
