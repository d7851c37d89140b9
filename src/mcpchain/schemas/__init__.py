# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""mcp-chain schemas."""

from mcpchain.schemas.chain import (
    UNKNOWN_SERVER,
    Entry,
    Run,
    RunOutcome,
    RunStatus,
    Step,
    StepStatus,
)

__all__ = [
    "UNKNOWN_SERVER",
    "Entry",
    "Run",
    "RunOutcome",
    "RunStatus",
    "Step",
    "StepStatus",
]
