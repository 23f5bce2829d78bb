# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Builders for test data shared by unit and integration tests."""

from typing import Any

from src.core.intelligence.llm.client import LLMToolResponse, ToolCall
from src.core.tools import SearchHit, ToolCallRecord, ToolResult


def make_hit(
    id: str | None = "source:1",
    content: str = "Pricing is tiered by seat count.",
    source_name: str = "Pricing Guide",
    score: float = 0.9,
    metadata: dict[str, Any] | None = None,
) -> SearchHit:
    """Build a search hit with sensible defaults."""
    return SearchHit(
        id=id,
        content=content,
        source_name=source_name,
        score=score,
        metadata=metadata or {},
    )


def make_record(name: str, result: ToolResult, arguments: dict[str, Any] | None = None) -> ToolCallRecord:
    """Build an executed tool call record."""
    return ToolCallRecord(id=f"call_{name}", name=name, arguments=arguments or {}, result=result)


def tool_turn(*calls: tuple[str, dict[str, Any]], content: str = "") -> LLMToolResponse:
    """Build a model turn that requests tools."""
    return LLMToolResponse(
        content=content,
        model="gemini/gemini-2.5-pro",
        tool_calls=[
            ToolCall(id=f"call_{i}", name=name, arguments=arguments)
            for i, (name, arguments) in enumerate(calls, start=1)
        ],
    )


def text_turn(content: str) -> LLMToolResponse:
    """Build a model turn with text only."""
    return LLMToolResponse(content=content, model="gemini/gemini-2.5-pro")
