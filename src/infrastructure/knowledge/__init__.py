# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Knowledge service client (Open Notebook).

Example:
    from src.infrastructure.knowledge import OpenNotebookClient

    client = OpenNotebookClient.from_settings(settings.knowledge)
    response = await client.search("pricing strategy")
"""

from src.infrastructure.knowledge.client import (
    KnowledgeModel,
    OpenNotebookClient,
    normalize_search_hit,
)
from src.infrastructure.knowledge.exceptions import (
    KnowledgeAPIError,
    KnowledgeServiceError,
)

__all__ = [
    "KnowledgeAPIError",
    "KnowledgeModel",
    "KnowledgeServiceError",
    "OpenNotebookClient",
    "normalize_search_hit",
]
