# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for the research tool system.

- ToolContext: request-scoped collaborators and options passed to every tool
- BaseTool: abstract base class for all tools
- ToolCallRecord: one executed invocation, as seen by the agent loop

Tools are executed by the agent loop when the model requests them through
tool calling. A tool never raises for an expected failure (service down,
missing notebook, bad arguments); it returns a ToolFailure instead so the
model can read the error and choose another strategy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from src.core.tools.results import ToolFailure, ToolResult
from src.core.tools.services import KnowledgeService, WebSearchService

if TYPE_CHECKING:
    from src.core.agents.context import KnowledgeModelConfig


@dataclass
class ToolContext:
    """Context available to tools during one research request.

    Built fresh for every request and passed explicitly to every tool
    execution, so concurrent requests never see each other's options.

    Attributes:
        knowledge: Knowledge base service.
        web_search: Web search service, if web search is enabled.
        notebook_id: Notebook to scope notebook-bound tools to.
        channel_id: Publishing channel the request belongs to.
        model_config: Knowledge Q&A model overrides.
        extra: Additional context tools might need.
    """

    knowledge: KnowledgeService
    web_search: Optional[WebSearchService] = None
    notebook_id: Optional[str] = None
    channel_id: Optional[str] = None
    model_config: Optional["KnowledgeModelConfig"] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCallRecord:
    """One tool invocation executed by the agent loop.

    Attributes:
        id: Tool call id assigned by the model.
        name: Tool name.
        arguments: Arguments the model passed.
        result: Typed result of the execution.
    """

    id: str
    name: str
    arguments: dict[str, Any]
    result: ToolResult

    def to_dict(self) -> dict[str, Any]:
        """Render as {name, result} for responses."""
        return {"name": self.name, "result": self.result.to_payload()}


class BaseTool(ABC):
    """Abstract base class for all tools.

    The tool lifecycle:
    1. The model receives tool definitions via the `definition` property
    2. The model calls a tool with arguments
    3. The agent loop executes the tool via `execute()`
    4. The typed result is recorded and sent back to the model

    Example:
        class EchoTool(BaseTool):
            @property
            def name(self) -> str:
                return "echo"

            @property
            def definition(self) -> dict[str, Any]:
                return {
                    "type": "function",
                    "function": {
                        "name": "echo",
                        "description": "Repeat the given text",
                        "parameters": {
                            "type": "object",
                            "properties": {"text": {"type": "string"}},
                            "required": ["text"],
                        },
                    },
                }

            async def execute(self, params, context) -> ToolResult:
                ...
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name matching the function name in definition."""

    @property
    @abstractmethod
    def definition(self) -> dict[str, Any]:
        """OpenAI-compatible tool definition.

        The description is what the model uses to decide when to call the
        tool, so it should say when the tool is the right choice.

        Returns:
            Dictionary with tool definition in OpenAI format.
        """

    @property
    def description(self) -> str:
        """Description from the function definition."""
        return self.definition.get("function", {}).get("description", "")

    @abstractmethod
    async def execute(
        self,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute the tool with given parameters.

        Args:
            params: Arguments from the model's tool call.
            context: Request-scoped execution context.

        Returns:
            A capability-specific result, or ToolFailure.
        """

    def validate_params(self, params: dict[str, Any]) -> None:
        """Validate parameters before execution.

        Checks that every parameter listed as required in the definition is
        present and non-empty. Override to add tool-specific checks.

        Args:
            params: Parameters to validate.

        Raises:
            ValueError: If parameters are invalid.
        """
        required = self.definition.get("function", {}).get("parameters", {}).get("required", [])
        missing = [key for key in required if params.get(key) in (None, "", [])]
        if missing:
            raise ValueError(f"Missing required parameter(s): {', '.join(missing)}")

    @staticmethod
    def failure(error: str) -> ToolFailure:
        """Build a failure result."""
        return ToolFailure(error=error)
