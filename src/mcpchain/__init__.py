# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""mcp-chain: sequential chain executor for MCP marketplace entries."""

__version__ = "0.1.0"
