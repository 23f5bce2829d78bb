# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed results of tool execution.

Every tool returns exactly one of these result types. Success variants are
specific to the capability that produced them; any failure is a
ToolFailure. Consumers (source extraction, stream events) pattern-match on
the type instead of probing payload fields.

to_payload() renders the uniform dictionary sent to the model and to stream
consumers: {"success": true, ...capability fields} or
{"success": false, "error": "..."}.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from src.core.tools.services import SearchHit, WebHit


def _hit_payload(hit: SearchHit) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "content": hit.content,
        "source": hit.source_name,
        "score": hit.score,
    }
    if hit.id:
        payload["sourceId"] = hit.id
    if hit.metadata:
        payload["metadata"] = hit.metadata
    return payload


def _web_hit_payload(hit: WebHit) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": hit.title,
        "url": hit.url,
        "content": hit.content,
        "score": hit.score,
    }
    if hit.published_date:
        payload["publishedDate"] = hit.published_date
    return payload


class ToolResult(ABC):
    """Base class of all tool results."""

    success: ClassVar[bool] = True

    @abstractmethod
    def _fields(self) -> dict[str, Any]:
        """Capability-specific payload fields."""

    def to_payload(self) -> dict[str, Any]:
        """Render the uniform result dictionary."""
        return {"success": self.success, **self._fields()}

    def to_llm_message(self) -> str:
        """Render the result as the content of a tool message."""
        return json.dumps(self.to_payload(), ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ToolFailure(ToolResult):
    """A tool could not complete. Never raised, always returned."""

    error: str
    success: ClassVar[bool] = False

    def _fields(self) -> dict[str, Any]:
        return {"error": self.error}


@dataclass(frozen=True)
class KnowledgeSearchResult(ToolResult):
    """Matches from a single knowledge base search."""

    query: str
    results: list[SearchHit]
    total_count: int

    def _fields(self) -> dict[str, Any]:
        return {
            "results": [_hit_payload(hit) for hit in self.results],
            "totalCount": self.total_count,
        }


@dataclass(frozen=True)
class KnowledgeAnswerResult(ToolResult):
    """A synthesized answer to a question."""

    question: str
    answer: str

    def _fields(self) -> dict[str, Any]:
        return {"answer": self.answer, "question": self.question}


@dataclass(frozen=True)
class MultiSearchResult(ToolResult):
    """Matches from several knowledge base searches run together."""

    searches: list[KnowledgeSearchResult]

    def _fields(self) -> dict[str, Any]:
        return {
            "searches": [
                {"query": search.query, **search._fields()} for search in self.searches
            ],
            "totalQueries": len(self.searches),
        }


@dataclass(frozen=True)
class NotebookChatResult(ToolResult):
    """Reply from a multi-turn notebook chat."""

    session_id: str
    response: str

    def _fields(self) -> dict[str, Any]:
        return {"sessionId": self.session_id, "response": self.response}


@dataclass(frozen=True)
class NotebookContextResult(ToolResult):
    """Full context of a notebook."""

    context: dict[str, Any]
    token_count: int
    char_count: int

    def _fields(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "tokenCount": self.token_count,
            "charCount": self.char_count,
        }


@dataclass(frozen=True)
class WebSearchResult(ToolResult):
    """Web pages matching one query."""

    query: str
    results: list[WebHit]

    def _fields(self) -> dict[str, Any]:
        return {
            "results": [_web_hit_payload(hit) for hit in self.results],
            "totalCount": len(self.results),
        }


@dataclass(frozen=True)
class MultiWebSearchResult(ToolResult):
    """Web pages matching several queries."""

    searches: list[WebSearchResult]

    def _fields(self) -> dict[str, Any]:
        return {
            "searches": [
                {
                    "query": search.query,
                    "results": [_web_hit_payload(hit) for hit in search.results],
                }
                for search in self.searches
            ],
            "totalQueries": len(self.searches),
        }


@dataclass(frozen=True)
class ArticleDraftResult(ToolResult):
    """Intent to open an article editor with generated content."""

    title: str
    content: str

    def _fields(self) -> dict[str, Any]:
        return {"type": "article_draft", "title": self.title, "content": self.content}


@dataclass(frozen=True)
class PostDraftResult(ToolResult):
    """Intent to open a social post editor with a generated caption."""

    caption: str
    platform: Optional[str] = None

    def _fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {"type": "post_draft", "caption": self.caption}
        if self.platform:
            fields["platform"] = self.platform
        return fields


@dataclass(frozen=True)
class MediaDraftResult(ToolResult):
    """Intent to generate media from a prompt."""

    prompt: str

    def _fields(self) -> dict[str, Any]:
        return {"type": "media_draft", "prompt": self.prompt}

