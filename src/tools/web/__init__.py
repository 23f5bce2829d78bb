# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Web search tools.

This category contains tools backed by the optional web search service:
- web_search: One web search
- web_search_multiple: Several web searches in parallel

They are only registered when the request asks for web search and a
web search service is configured.
"""

from src.tools.web.web_search import WebSearchTool
from src.tools.web.web_search_multiple import WebSearchMultipleTool

__all__ = [
    "WebSearchMultipleTool",
    "WebSearchTool",
]
