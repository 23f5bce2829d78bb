# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Research agent for knowledge-grounded answers.

The agent layer orchestrates one research request:

Architecture:
    ResearchAgent -> ResearchPromptBuilder -> AgentLoop -> ToolRegistry -> services
                          |                      |
                   stream bridge          source extraction

Components:
    ResearchAgent: Entry point (single-shot, streaming, draft tasks).
    AgentLoop: Bounded tool-calling loop.
    bridge_agent_run: Callback-to-stream bridge with cancellation.
    extract_sources: Source references from tool results.
    build_reference / parse_reference / find_references: Inline citations.

Usage:
    from src.core.agents import ResearchAgent, ResearchRequest

    agent = ResearchAgent.from_settings()
    response = await agent.research_query(ResearchRequest(query="..."))
"""

from src.core.agents.citations import (
    ParsedReference,
    build_reference,
    find_references,
    parse_reference,
)
from src.core.agents.context import (
    AgentError,
    AgentTask,
    AgentTaskType,
    ChatMessage,
    KnowledgeModelConfig,
    ResearchRequest,
    ResearchResponse,
    ToolCallSummary,
)
from src.core.agents.loop import AgentLoop, AgentRunResult, StepResult
from src.core.agents.prompt_builder import ResearchPromptBuilder, format_history
from src.core.agents.research import ResearchAgent
from src.core.agents.sources import (
    LocationType,
    SourceLocation,
    SourceReference,
    detect_source_type,
    extract_location,
    extract_sources,
)
from src.core.agents.stream import (
    DeltaChunk,
    DoneChunk,
    ErrorChunk,
    SourcesChunk,
    StatusChunk,
    StreamChunk,
    ToolResultChunk,
    ToolStartChunk,
    bridge_agent_run,
    encode_ndjson,
    parse_chunk,
)

__all__ = [
    # Agent
    "ResearchAgent",
    "AgentError",
    # Request/response models
    "AgentTask",
    "AgentTaskType",
    "ChatMessage",
    "KnowledgeModelConfig",
    "ResearchRequest",
    "ResearchResponse",
    "ToolCallSummary",
    # Loop
    "AgentLoop",
    "AgentRunResult",
    "StepResult",
    # Prompt
    "ResearchPromptBuilder",
    "format_history",
    # Sources and citations
    "LocationType",
    "ParsedReference",
    "SourceLocation",
    "SourceReference",
    "build_reference",
    "detect_source_type",
    "extract_location",
    "extract_sources",
    "find_references",
    "parse_reference",
    # Streaming
    "DeltaChunk",
    "DoneChunk",
    "ErrorChunk",
    "SourcesChunk",
    "StatusChunk",
    "StreamChunk",
    "ToolResultChunk",
    "ToolStartChunk",
    "bridge_agent_run",
    "encode_ndjson",
    "parse_chunk",
]
