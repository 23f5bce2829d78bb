# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tool implementations for the research agent.

Tools are organized by functional category:

- knowledge: Knowledge base search and Q&A, plus notebook chat and context
- web: Optional web search
- intents: Draft materialization (article, post, media)

The manifest.py file is the central registry of all available tools.
The loader.py file builds the per-request tool registry.

Usage:
    from src.tools import create_research_registry

    registry = create_research_registry(notebook_id="nb-1", search_web=True,
                                        web_search_available=True)

Adding a New Tool:
    1. Create tool class in the appropriate category folder
    2. Add entry to TOOL_MANIFEST in manifest.py
"""

from src.tools.loader import create_research_registry, load_tool_class
from src.tools.manifest import (
    TOOL_MANIFEST,
    get_available_tool_names,
    get_tool_info,
    get_tools_by_category,
)

__all__ = [
    # Factory functions
    "create_research_registry",
    "load_tool_class",
    # Manifest access
    "TOOL_MANIFEST",
    "get_available_tool_names",
    "get_tool_info",
    "get_tools_by_category",
]
