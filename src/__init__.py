"""ContentOps Research Engine.

Agentic research over a knowledge base: a bounded tool-calling loop that
retrieves, cites and streams answers for content creation workflows.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
