# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tool registry for the research agent.

The registry holds the tools offered to the model for one request, renders
their definitions for tool calling and executes calls by name. Execution
through the registry always yields a ToolResult: unknown names, invalid
arguments and unexpected tool errors become ToolFailure values.

Example:
    from src.core.tools import ToolRegistry

    registry = ToolRegistry()
    registry.register(SearchKnowledgeTool())

    tools = registry.get_definitions()
    result = await registry.execute("search_knowledge", {"query": "pricing"}, context)
"""

import logging
from typing import Any

from src.core.tools.base import BaseTool, ToolContext
from src.core.tools.results import ToolFailure, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry for managing tool instances.

    Example:
        registry = ToolRegistry()
        registry.register(SearchKnowledgeTool())
        registry.register(AskKnowledgeTool())

        tools = registry.get_definitions()
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool in the registry.

        Args:
            tool: Tool instance to register.

        Raises:
            ValueError: If a tool with the same name already exists.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def replace(self, tool: BaseTool) -> None:
        """Register or overwrite a tool.

        Args:
            tool: Tool instance to register or replace.
        """
        self._tools[tool.name] = tool
        logger.debug("Registered/replaced tool: %s", tool.name)

    def unregister(self, name: str) -> None:
        """Remove a tool from the registry.

        Raises:
            KeyError: If the tool is not registered.
        """
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' is not registered")

        del self._tools[name]
        logger.debug("Unregistered tool: %s", name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name.

        Raises:
            KeyError: If the tool is not registered.
        """
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' is not registered")

        return self._tools[name]

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def list_names(self) -> list[str]:
        """Get names of all registered tools, in registration order."""
        return list(self._tools.keys())

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get OpenAI-compatible definitions for all tools.

        Returns:
            List of tool definitions ready for the tools parameter.
        """
        return [tool.definition for tool in self._tools.values()]

    def get_descriptions(self) -> dict[str, str]:
        """Get name-to-description mapping for all tools."""
        return {name: tool.description or "No description" for name, tool in self._tools.items()}

    async def execute(
        self,
        name: str,
        params: dict[str, Any],
        context: ToolContext,
    ) -> ToolResult:
        """Execute a tool by name.

        Args:
            name: Tool name requested by the model.
            params: Arguments from the tool call.
            context: Request-scoped execution context.

        Returns:
            The tool's result, or ToolFailure if the tool is unknown, the
            arguments are invalid or the tool raised unexpectedly.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool: %s", name)
            return ToolFailure(error=f"Unknown tool: {name}")

        try:
            tool.validate_params(params)
        except ValueError as e:
            logger.warning("Invalid arguments for %s: %s", name, e)
            return ToolFailure(error=str(e))

        try:
            return await tool.execute(params, context)
        except Exception as e:
            logger.exception("Tool %s raised unexpectedly", name)
            return ToolFailure(error=f"Tool {name} failed: {e}")

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={list(self._tools.keys())})"
