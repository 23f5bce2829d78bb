# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Knowledge tools backed by the knowledge retrieval service.

This category contains tools that read from the knowledge base:
- search_knowledge: Vector or keyword search for relevant chunks
- ask_knowledge: Synthesized answer to a question
- search_multiple: Several searches in parallel
- chat_with_notebook: Multi-turn notebook conversation (needs a notebook)
- build_context: Full notebook context (needs a notebook)
"""

from src.tools.knowledge.ask_knowledge import AskKnowledgeTool
from src.tools.knowledge.build_context import BuildContextTool
from src.tools.knowledge.chat_with_notebook import ChatWithNotebookTool
from src.tools.knowledge.search_knowledge import SearchKnowledgeTool
from src.tools.knowledge.search_multiple import SearchMultipleTool

__all__ = [
    "AskKnowledgeTool",
    "BuildContextTool",
    "ChatWithNotebookTool",
    "SearchKnowledgeTool",
    "SearchMultipleTool",
]
