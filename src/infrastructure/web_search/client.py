# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tavily web search client.

Implements the WebSearchService protocol on top of the Tavily search API.

Example:
    client = TavilyClient(api_key="tvly-...")
    response = await client.search("latest EU AI act news", max_results=5)
"""

import asyncio
import logging
from typing import Any, Literal, Optional

import aiohttp

from src.core.config.settings import WebSearchSettings
from src.core.tools.services import WebHit, WebSearchResponse

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://api.tavily.com/search"


class WebSearchError(Exception):
    """Web search failed or is not configured.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code, when the API answered.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _parse_hit(raw: dict[str, Any]) -> WebHit:
    return WebHit(
        title=raw.get("title") or "",
        url=raw.get("url") or "",
        content=raw.get("content") or "",
        score=float(raw.get("score") or 0),
        published_date=raw.get("published_date"),
    )


class TavilyClient:
    """Async HTTP client for the Tavily search API."""

    def __init__(
        self,
        api_key: Optional[str],
        url: str = DEFAULT_URL,
        search_depth: Literal["basic", "advanced"] = "basic",
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self.url = url
        self.search_depth = search_depth
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_settings(cls, settings: WebSearchSettings) -> Optional["TavilyClient"]:
        """Create a client, or None when no API key is configured."""
        if not settings.is_configured:
            return None
        return cls(
            api_key=settings.api_key.get_secret_value() if settings.api_key else None,
            url=settings.url,
            search_depth=settings.search_depth,
            timeout=settings.request_timeout,
        )

    async def search(
        self,
        query: str,
        max_results: int = 5,
        include_answer: bool = False,
    ) -> WebSearchResponse:
        """Search the web.

        Args:
            query: Search text.
            max_results: Maximum number of results.
            include_answer: Ask the provider for a short generated answer.

        Returns:
            Search results for the query.

        Raises:
            WebSearchError: If the key is missing or the request failed.
        """
        if not self._api_key:
            raise WebSearchError("Tavily API key not configured")

        payload = {
            "api_key": self._api_key,
            "query": query,
            "max_results": max_results,
            "include_answer": include_answer,
            "search_depth": self.search_depth,
        }

        logger.info("Web search: %r (max_results=%d)", query[:50], max_results)

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url, json=payload) as response:
                    if response.status >= 400:
                        text = await response.text()
                        logger.error("Tavily API error: %d - %s", response.status, text)
                        raise WebSearchError(
                            f"Web search failed: {response.status}",
                            status_code=response.status,
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Tavily connection error: %s", e)
            raise WebSearchError(f"Web search failed: {e}") from e

        return WebSearchResponse(
            query=data.get("query") or query,
            results=[_parse_hit(raw) for raw in data.get("results") or []],
            answer=data.get("answer"),
        )
