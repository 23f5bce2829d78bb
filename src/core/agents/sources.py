# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Source extraction from tool results.

Turns the tool calls of a research run into an ordered, deduplicated list
of source references:

- Each knowledge search hit becomes one reference
- Multi-query searches are flattened in query order
- A knowledge Q&A answer becomes one synthesized reference
- Failed results and results of other tools are skipped

References are deduplicated by id (first occurrence wins) and sorted by
score, highest first. Equal scores keep their extraction order.
"""

from collections.abc import Iterable
from enum import Enum
from operator import attrgetter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.tools.base import ToolCallRecord
from src.core.tools.results import (
    KnowledgeAnswerResult,
    KnowledgeSearchResult,
    MultiSearchResult,
)
from src.core.tools.services import SearchHit

EXCERPT_LENGTH = 200
SYNTHESIZED_SOURCE_NAME = "Knowledge Base (Synthesized)"


class LocationType(str, Enum):
    """Kinds of positions within a source."""

    LINE = "line"
    PAGE = "page"
    PARAGRAPH = "paragraph"
    CHAPTER = "chapter"
    SECTION = "section"
    TIMECODE = "timecode"
    ANCHOR = "anchor"
    INDEX = "index"


class SourceLocation(BaseModel):
    """Position within a source document.

    Attributes:
        type: Location kind.
        value: Line or page number, timecode, section name, ...
        label: Human-readable label, e.g. "Page 15".
    """

    model_config = ConfigDict(frozen=True)

    type: LocationType
    value: str
    label: str | None = None


class SourceReference(BaseModel):
    """A knowledge source consulted while answering.

    Attributes:
        id: Source identifier.
        name: Human-readable source name.
        excerpt: First characters of the matched content.
        score: Relevance score.
        used_in_response: Set when the source directly shaped the answer.
        location: Position within the source, when known.
        source_type: pdf, audio, video, website, ... when detectable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    excerpt: str
    score: float = 0.0
    used_in_response: bool | None = Field(default=None, alias="usedInResponse")
    location: SourceLocation | None = None
    source_type: str | None = Field(default=None, alias="sourceType")

    def to_wire(self) -> dict[str, Any]:
        """Render with camelCase names, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _first_present(metadata: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if metadata.get(key):
            return metadata[key]
    return None


def extract_location(metadata: dict[str, Any] | None) -> SourceLocation | None:
    """Derive a location from hit metadata.

    Priority: timecode, page, chapter, section, line, index. Index 0 is a
    valid position; the other keys need a truthy value.
    """
    if not metadata:
        return None

    if value := _first_present(metadata, "timecode", "timestamp"):
        return SourceLocation(type=LocationType.TIMECODE, value=str(value), label=f"Timecode {value}")
    if value := _first_present(metadata, "page", "page_number"):
        return SourceLocation(type=LocationType.PAGE, value=str(value), label=f"Page {value}")
    if value := _first_present(metadata, "chapter"):
        return SourceLocation(type=LocationType.CHAPTER, value=str(value), label=f"Chapter {value}")
    if value := _first_present(metadata, "section"):
        return SourceLocation(type=LocationType.SECTION, value=str(value), label=f"Section: {value}")
    if value := _first_present(metadata, "line", "line_number"):
        return SourceLocation(type=LocationType.LINE, value=str(value), label=f"Line {value}")

    index = metadata.get("chunk_index")
    if index is None:
        index = metadata.get("index")
    if index is not None:
        return SourceLocation(type=LocationType.INDEX, value=str(index), label=f"Index {index}")

    return None


def detect_source_type(source_name: str, metadata: dict[str, Any] | None) -> str | None:
    """Guess the kind of a source from metadata, else from its name."""
    if metadata:
        explicit = metadata.get("type") or metadata.get("source_type")
        if explicit:
            return str(explicit)

    name = source_name.lower()
    if ".pdf" in name:
        return "pdf"
    if any(marker in name for marker in (".mp3", ".wav", "audio")):
        return "audio"
    if any(marker in name for marker in (".mp4", ".mov", "video", "youtube")):
        return "video"
    if any(marker in name for marker in ("http://", "https://", ".com", ".org")):
        return "website"
    return None


def _hit_reference(hit: SearchHit) -> SourceReference:
    return SourceReference(
        id=hit.id or f"{hit.source_name}-{hit.content[:50]}",
        name=hit.source_name,
        excerpt=hit.content[:EXCERPT_LENGTH],
        score=hit.score or 0.0,
        location=extract_location(hit.metadata),
        source_type=detect_source_type(hit.source_name, hit.metadata),
    )


def _answer_reference(result: KnowledgeAnswerResult) -> SourceReference:
    return SourceReference(
        id=f"ask-{result.question[:30] or 'unknown'}",
        name=SYNTHESIZED_SOURCE_NAME,
        excerpt=result.answer[:EXCERPT_LENGTH],
        score=1.0,
        used_in_response=True,
    )


def _references(record: ToolCallRecord) -> list[SourceReference]:
    match record.result:
        case KnowledgeSearchResult(results=hits):
            return [_hit_reference(hit) for hit in hits]
        case MultiSearchResult(searches=searches):
            return [_hit_reference(hit) for search in searches for hit in search.results]
        case KnowledgeAnswerResult() as answer if answer.answer:
            return [_answer_reference(answer)]
        case _:
            return []


def extract_sources(records: Iterable[ToolCallRecord]) -> list[SourceReference]:
    """Extract source references from executed tool calls.

    Args:
        records: Tool calls in execution order.

    Returns:
        Deduplicated references sorted by score, highest first.
    """
    seen: set[str] = set()
    sources: list[SourceReference] = []

    for record in records:
        for reference in _references(record):
            if reference.id in seen:
                continue
            seen.add(reference.id)
            sources.append(reference)

    return sorted(sources, key=attrgetter("score"), reverse=True)
