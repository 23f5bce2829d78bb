# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""System prompt builder for the research agent.

This module provides the ResearchPromptBuilder class that assembles the
retrieval system prompt from the tools offered to the model and the
request's runtime context:
- Retrieval strategy, with steps only for tools that are offered
- Tool list with descriptions from the central manifest
- Notebook id, or a note that notebook tools are unavailable
- Conversation history
- Response guidelines and the inline citation format

Usage:
    from src.core.agents.prompt_builder import ResearchPromptBuilder

    builder = ResearchPromptBuilder(registry.list_names())
    prompt = builder.build(notebook_id="notebook:abc", history=request.history)
"""

import logging
from collections.abc import Sequence

from src.core.agents.context import ChatMessage
from src.tools.manifest import get_tool_info

logger = logging.getLogger(__name__)

ROLE = "You are a Research Agent with access to a knowledge base through multiple tools."

NO_HISTORY = "(No prior conversation)"

RESPONSE_GUIDELINES = """## RESPONSE GUIDELINES
- **NEVER expose your search process** to the user - don't mention which search type you used, don't say "I tried semantic search" or "I will try keyword search"
- **NEVER preface answers** with "Based on the found documents" or similar phrases - just answer directly
- **Answer naturally** as if you simply know the information
- **If sources conflict**, present both perspectives with their sources
- **If knowledge base lacks info**, say you don't have information on that topic (don't explain search failures)
- **Prefer depth over breadth** - thorough answers over superficial coverage
- **Use Markdown** for readability
- **Never fabricate** information not found in sources"""

CITATION_FORMAT = """## CITATION FORMAT (CRITICAL)
When citing sources, use this EXACT inline reference format:
`[[ref:id={SOURCE_ID}|name={SOURCE_NAME}|loc={LOCATION_TYPE}:{LOCATION_VALUE}]]`

Components:
- **id**: The source ID from search results (e.g., "source:abc123")
- **name**: Human-readable source name
- **loc**: Optional location within source (type:value format)

Location types:
- `line:{number}` - For text documents
- `page:{number}` - For PDFs
- `chapter:{name}` - For chapters
- `section:{name}` - For sections
- `timecode:{MM:SS}` or `timecode:{HH:MM:SS}` - For audio/video
- `index:{number}` - For indexed content

Examples:
- `[[ref:id=source:abc123|name=Marketing Guide|loc=chapter:3]]`
- `[[ref:id=source:xyz789|name=Podcast Episode 42|loc=timecode:15:30]]`
- `[[ref:id=source:def456|name=API Documentation|loc=section:Authentication]]`
- `[[ref:id=source:ghi789|name=User Manual]]` (no location)

IMPORTANT:
- Always include the source ID and name
- Include location when the search result provides specific position info
- Place references inline where you use the information, not at the end"""

# (tool that must be offered, strategy line)
STRATEGY_STEPS: tuple[tuple[str, str], ...] = (
    (
        "search_knowledge",
        '**START** with search_knowledge(type: "vector") for semantic matches on the user\'s question',
    ),
    (
        "search_knowledge",
        '**IF** results are sparse or low-scoring, try search_knowledge(type: "text") for keyword matches',
    ),
    (
        "ask_knowledge",
        "**FOR** complex questions requiring reasoning, use ask_knowledge to get a synthesized answer",
    ),
    (
        "search_multiple",
        "**FOR** comparing multiple topics, use search_multiple to search several queries in parallel",
    ),
    (
        "chat_with_notebook",
        "**FOR** follow-up depth on a topic, use chat_with_notebook for multi-turn exploration",
    ),
    (
        "build_context",
        "**FOR** comprehensive overview, use build_context to get full notebook context",
    ),
    (
        "web_search",
        "**FOR** recent events or topics missing from the knowledge base, use web_search or web_search_multiple",
    ),
)

FINAL_STEP = "**ONLY** respond when you have sufficient context - it's better to search more than guess"

INTENT_GUIDELINES = """## CONTENT DRAFTS
Only when the user explicitly asks for an article, a social media post or an image, call
create_article_draft, create_post_draft or create_media_draft with content grounded in your research."""


def format_history(history: Sequence[ChatMessage]) -> str:
    """Render prior conversation as "User: ..." / "Assistant: ..." lines."""
    return "\n".join(
        f"{'User' if message.role == 'user' else 'Assistant'}: {message.text}"
        for message in history
    )


class ResearchPromptBuilder:
    """Builds the retrieval system prompt for one research request.

    Attributes:
        tool_names: Names of the tools offered to the model, in order.
    """

    def __init__(self, tool_names: Sequence[str]):
        self.tool_names = list(tool_names)

    def build(
        self,
        notebook_id: str | None = None,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        """Build the complete system prompt.

        Args:
            notebook_id: Notebook the request is scoped to, if any.
            history: Prior conversation, oldest first.

        Returns:
            System prompt string ready for the model.
        """
        parts = [
            ROLE,
            self._build_strategy_section(),
            self._build_tools_section(),
            self._build_notebook_section(notebook_id),
            f"## CONVERSATION HISTORY\n{format_history(history) or NO_HISTORY}",
            RESPONSE_GUIDELINES,
            CITATION_FORMAT,
        ]
        if "create_article_draft" in self.tool_names:
            parts.append(INTENT_GUIDELINES)

        return "\n\n".join(parts)

    def _build_strategy_section(self) -> str:
        offered = set(self.tool_names)
        steps = [line for tool, line in STRATEGY_STEPS if tool in offered]
        steps.append(FINAL_STEP)
        numbered = "\n".join(f"{i}. {line}" for i, line in enumerate(steps, start=1))
        return (
            "## RETRIEVAL STRATEGY\n"
            "You decide when and how to retrieve information. Follow this strategy:\n\n"
            f"{numbered}"
        )

    def _build_tools_section(self) -> str:
        lines = []
        for name in self.tool_names:
            tool_info = get_tool_info(name)
            if tool_info and tool_info.get("description"):
                lines.append(f"- **{name}**: {tool_info['description']}")
            else:
                lines.append(f"- **{name}**")
        return "## AVAILABLE TOOLS\n" + "\n".join(lines)

    def _build_notebook_section(self, notebook_id: str | None) -> str:
        if notebook_id:
            return f'## NOTEBOOK ID\nFor tools that require it: "{notebook_id}"'
        return (
            "## NOTE\n"
            "No notebook ID provided - chat_with_notebook and build_context are unavailable."
        )
