# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intent tools that materialize drafts.

These tools call no service. Their results ask the client to open an
editor with generated content:
- create_article_draft: Blog article title and HTML body
- create_post_draft: Social media caption
- create_media_draft: Image generation prompt
"""

from src.tools.intents.create_article_draft import CreateArticleDraftTool
from src.tools.intents.create_media_draft import CreateMediaDraftTool
from src.tools.intents.create_post_draft import CreatePostDraftTool

__all__ = [
    "CreateArticleDraftTool",
    "CreateMediaDraftTool",
    "CreatePostDraftTool",
]
