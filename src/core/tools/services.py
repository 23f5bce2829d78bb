# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""External services the research tools depend on.

Tools talk to the knowledge base and the web through these protocols, so
the HTTP clients in src.infrastructure can be swapped for fakes in tests.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol

SearchType = Literal["vector", "text"]


@dataclass(frozen=True)
class SearchHit:
    """One normalized knowledge base search result.

    Attributes:
        id: Source identifier in the knowledge base, if it gave one.
        content: Matched text chunk.
        source_name: Human-readable source name.
        score: Relevance score in [0, 1].
        metadata: Position and type hints (page, timecode, type, ...).
    """

    id: Optional[str]
    content: str
    source_name: str
    score: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchResponse:
    """Normalized knowledge base search response."""

    results: list[SearchHit]
    total_count: int
    search_type: str = "vector"


@dataclass(frozen=True)
class AskResponse:
    """Synthesized answer from the knowledge base."""

    answer: str
    question: str


@dataclass(frozen=True)
class ChatSession:
    """A multi-turn chat session bound to a notebook."""

    id: str
    notebook_id: str
    title: Optional[str] = None


@dataclass(frozen=True)
class ChatTurn:
    """One message in a notebook chat."""

    role: str
    content: str


@dataclass(frozen=True)
class ChatResponse:
    """Result of executing a chat message."""

    session_id: str
    messages: list[ChatTurn]

    @property
    def last_reply(self) -> str:
        """Content of the most recent assistant message."""
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message.content
        return ""


@dataclass(frozen=True)
class NotebookContext:
    """Assembled context of a whole notebook."""

    context: dict[str, Any]
    token_count: int = 0
    char_count: int = 0


@dataclass(frozen=True)
class WebHit:
    """One web search result."""

    title: str
    url: str
    content: str
    score: float = 0.0
    published_date: Optional[str] = None


@dataclass(frozen=True)
class WebSearchResponse:
    """Web search response."""

    query: str
    results: list[WebHit]
    answer: Optional[str] = None


class KnowledgeService(Protocol):
    """Retrieval backend for the research tools."""

    async def search(
        self,
        query: str,
        search_type: SearchType = "vector",
        limit: int = 5,
        minimum_score: float = 0.3,
        notebook_id: Optional[str] = None,
    ) -> SearchResponse: ...

    async def ask(
        self,
        question: str,
        strategy_model: Optional[str] = None,
        answer_model: Optional[str] = None,
        final_answer_model: Optional[str] = None,
    ) -> AskResponse: ...

    async def create_chat_session(
        self,
        notebook_id: str,
        title: Optional[str] = None,
        model_override: Optional[str] = None,
    ) -> ChatSession: ...

    async def execute_chat(
        self,
        session_id: str,
        message: str,
        model_override: Optional[str] = None,
    ) -> ChatResponse: ...

    async def build_context(self, notebook_id: str) -> NotebookContext: ...


class WebSearchService(Protocol):
    """Web search backend for the research tools."""

    async def search(
        self,
        query: str,
        max_results: int = 5,
        include_answer: bool = False,
    ) -> WebSearchResponse: ...
