# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Chain and run schemas for mcp-chain.

Follows the resolve -> execute pattern:
- entry ids → resolve_chain → Steps (pending)
- Steps → ChainExecutor.start → Run with RunOutcome

Steps and Runs are frozen. Each state transition produces a new value,
so every snapshot handed to an observer stays valid.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


UNKNOWN_SERVER = "Unknown Server"


@dataclass(frozen=True)
class Entry:
    """A catalog entry (MCP server) that a step runs against."""
    id: str
    name: str
    category: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()


class StepStatus(Enum):
    """Step state machine: pending → running → completed | failed."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED)


@dataclass(frozen=True)
class Step:
    """Execution record for one entry within a run."""
    step_id: str
    entry_id: str
    display_name: str
    status: StepStatus = StepStatus.PENDING
    input: Any = None
    output: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    duration_ms: Optional[int] = None


class RunStatus(Enum):
    """Aggregate classification of a finished run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


@dataclass(frozen=True)
class RunOutcome:
    """Summary computed once every step has been attempted."""
    status: RunStatus
    total_steps: int
    completed_steps: int
    failed_steps: int = 0
    total_duration_ms: int = 0
    cancelled: bool = False
    error: Optional[str] = None

    def summary(self) -> str:
        """Single line suitable for showing under the step list."""
        if self.status == RunStatus.SUCCESS:
            return f"Chain completed in {self.total_duration_ms / 1000:.1f}s"
        if self.status == RunStatus.PARTIAL:
            line = (
                f"Partial completion: {self.completed_steps}/{self.total_steps} "
                "steps completed"
            )
            if self.cancelled:
                line += " (cancelled)"
            return line
        return f"Execution failed: {self.error}"


@dataclass(frozen=True)
class Run:
    """One execution of a chain.

    current_index is None before the first step starts and after the
    last one finishes. outcome stays None until the run is over.
    """
    run_id: str
    started_at: datetime
    steps: Tuple[Step, ...] = field(default_factory=tuple)
    current_index: Optional[int] = None
    outcome: Optional[RunOutcome] = None

    @property
    def is_finished(self) -> bool:
        return self.outcome is not None
