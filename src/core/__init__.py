# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the research engine.

This package contains the core logic:
- config: Application configuration and settings
- intelligence: Model client, routing, retry policy and output repair
- tools: Tool contracts, typed results and the tool registry
- agents: Research agent, tool-calling loop, streaming and citations
"""
