# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Web search client (Tavily)."""

from src.infrastructure.web_search.client import TavilyClient, WebSearchError

__all__ = [
    "TavilyClient",
    "WebSearchError",
]
