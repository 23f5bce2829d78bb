# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tool loader and registry factory.

This module builds the tool set offered to the model for one research
request. It is the SINGLE place where tools are loaded and registered.

Usage:
    from src.tools import create_research_registry

    registry = create_research_registry(
        notebook_id=request.notebook_id,
        search_web=request.search_web,
        web_search_available=web_client is not None,
    )

The loader dynamically imports tool classes from the manifest, so adding a
new tool only requires updating manifest.py.
"""

import importlib
import logging
from typing import Optional

from src.core.tools import BaseTool, ToolRegistry
from src.tools.manifest import TOOL_MANIFEST

logger = logging.getLogger(__name__)


def load_tool_class(class_path: str) -> type[BaseTool]:
    """Dynamically load a tool class from its path.

    Args:
        class_path: Fully qualified class path in format "module.path:ClassName"

    Returns:
        The tool class (not an instance).

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the class doesn't exist in the module.

    Example:
        tool_class = load_tool_class("src.tools.knowledge.search_knowledge:SearchKnowledgeTool")
        tool = tool_class()
    """
    module_path, class_name = class_path.rsplit(":", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def _enabled_categories(
    notebook_id: Optional[str],
    search_web: bool,
    web_search_available: bool,
    include_intents: bool,
) -> set[str]:
    categories = {"knowledge"}
    if notebook_id:
        categories.add("notebook")
    if search_web and web_search_available:
        categories.add("web")
    elif search_web:
        logger.warning("Web search requested but no web search service is configured")
    if include_intents:
        categories.add("intent")
    return categories


def create_research_registry(
    notebook_id: Optional[str] = None,
    search_web: bool = False,
    web_search_available: bool = False,
    include_intents: bool = False,
) -> ToolRegistry:
    """Create the tool registry for one research request.

    Knowledge tools are always offered. Notebook tools need a notebook id,
    web tools need both the request flag and a configured provider, and
    intent tools are opt-in.

    Args:
        notebook_id: Notebook the request is scoped to, if any.
        search_web: Whether the request asked for web search.
        web_search_available: Whether a web search service is configured.
        include_intents: Whether to offer the draft intent tools.

    Returns:
        ToolRegistry with the enabled tools, in manifest order.

    Raises:
        ValueError: If a manifest entry cannot be loaded.
    """
    categories = _enabled_categories(notebook_id, search_web, web_search_available, include_intents)
    registry = ToolRegistry()

    for tool_name, tool_info in TOOL_MANIFEST.items():
        if tool_info["category"] not in categories:
            continue

        try:
            tool_class = load_tool_class(tool_info["class_path"])
        except (ImportError, AttributeError) as e:
            raise ValueError(
                f"Failed to load tool '{tool_name}' from '{tool_info['class_path']}': {e}"
            ) from e

        tool_instance = tool_class()
        tool_instance.category = tool_info["category"]  # type: ignore[attr-defined]
        registry.register(tool_instance)

    logger.debug(
        "Created research tool registry: %s (categories=%s)",
        registry.list_names(),
        sorted(categories),
    )
    return registry
