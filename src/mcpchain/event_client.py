# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""JSONL event trail for chain runs.

One line per event, correlated by run id:
chain.started, step.running, step.completed, step.failed, chain.finished.
The executor never reads the file back.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mcpchain.schemas import Run, Step


class EventClient:
    """Append-only JSONL event logger."""

    def __init__(self, log_path: Union[str, Path]):
        self.log_path = Path(log_path).expanduser()
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_event(
        self,
        event_type: str,
        correlation_id: str,
        status: str,
        payload: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "correlation_id": correlation_id,
            "status": status,
        }
        if payload:
            event["payload"] = payload
        if error_message:
            event["error_message"] = error_message

        with open(self.log_path, "a") as f:
            f.write(json.dumps(event, default=str) + "\n")

    def chain_started(self, run: Run) -> None:
        self.log_event(
            "chain.started",
            run.run_id,
            "running",
            payload={"entry_ids": [s.entry_id for s in run.steps]},
        )

    def step_changed(self, run: Run, index: int, step: Step) -> None:
        """Record a step transition (running, completed or failed)."""
        payload: Dict[str, Any] = {
            "index": index,
            "step_id": step.step_id,
            "entry_id": step.entry_id,
        }
        if step.duration_ms is not None:
            payload["duration_ms"] = step.duration_ms
        self.log_event(
            f"step.{step.status.value}",
            run.run_id,
            step.status.value,
            payload=payload,
            error_message=step.error,
        )

    def chain_finished(self, run: Run) -> None:
        outcome = run.outcome
        if outcome is None:
            return
        self.log_event(
            "chain.finished",
            run.run_id,
            outcome.status.value,
            payload={
                "total_steps": outcome.total_steps,
                "completed_steps": outcome.completed_steps,
                "total_duration_ms": outcome.total_duration_ms,
                "cancelled": outcome.cancelled,
            },
            error_message=outcome.error,
        )
