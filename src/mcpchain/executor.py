# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Executor - Run a chain of catalog entries one step at a time.

Each step receives the previous step's output as its input.
A failed step never stops the chain: the next step still runs, with None
as its input (or the last successful output, with CarryForward.LAST_SUCCESS).
Produces a Run with per-step outcomes and an aggregate RunOutcome.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from mcpchain.actions import ActionProvider
from mcpchain.catalog import Catalog
from mcpchain.event_client import EventClient
from mcpchain.resolver import ChainSetupError, resolve_chain
from mcpchain.schemas import Run, RunOutcome, RunStatus, Step, StepStatus


logger = logging.getLogger(__name__)

RunCallback = Callable[[Run], None]


class ExecutorBusyError(Exception):
    """Raised when starting or resetting while a chain is running."""
    pass


class ActionTimeoutError(Exception):
    """Raised when an action reports its own timeout."""
    pass


class CarryForward(Enum):
    """Input handed to the step after a failed one."""

    NULL = "null"
    LAST_SUCCESS = "last_success"


def _utcnow() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def summarize(steps: Sequence[Step], cancelled: bool = False) -> RunOutcome:
    """
    Classify a run whose steps have all been attempted (or cancelled).

    success iff every step completed, partial otherwise - including when
    nothing completed, so per-step errors stay visible.
    """
    completed = sum(1 for s in steps if s.status == StepStatus.COMPLETED)
    failed = sum(1 for s in steps if s.status == StepStatus.FAILED)
    total_duration = sum(s.duration_ms or 0 for s in steps)
    status = RunStatus.SUCCESS if completed == len(steps) else RunStatus.PARTIAL
    return RunOutcome(
        status=status,
        total_steps=len(steps),
        completed_steps=completed,
        failed_steps=failed,
        total_duration_ms=total_duration,
        cancelled=cancelled,
    )


# =============================================================================
# Chain Execution
# =============================================================================

class ChainExecutor:
    """Sequential, fault-tolerant chain runner.

    Only one run at a time. Observers get a fresh Run snapshot through
    on_update after every transition and must not mutate it.
    """

    def __init__(
        self,
        catalog: Catalog,
        actions: ActionProvider,
        step_timeout_s: Optional[float] = 300.0,
        inter_step_delay_s: float = 0.0,
        carry_forward: CarryForward = CarryForward.NULL,
        on_update: Optional[RunCallback] = None,
        on_complete: Optional[RunCallback] = None,
        event_client: Optional[EventClient] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            catalog: Entry lookup, used for display names and at execution time
            actions: Provider performing each step's work
            step_timeout_s: Upper bound for a single action (None disables it)
            inter_step_delay_s: Pause between steps, for pacing only
            carry_forward: Input passed on after a failed step
            on_update: Called with a Run snapshot after every transition
            on_complete: Called with the final Run
            event_client: Optional JSONL event trail
            clock: Monotonic clock in seconds, used for step durations
            sleep: Awaitable sleep used for the inter-step delay
        """
        self.catalog = catalog
        self.actions = actions
        self.step_timeout_s = step_timeout_s
        self.inter_step_delay_s = inter_step_delay_s
        self.carry_forward = carry_forward
        self.on_update = on_update
        self.on_complete = on_complete
        self.event_client = event_client
        self.clock = clock
        self.sleep = sleep

        self._run: Optional[Run] = None
        self._running = False
        self._cancel_requested = False

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def run(self) -> Optional[Run]:
        return self._run

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._run.steps if self._run else ()

    @property
    def current_index(self) -> Optional[int]:
        return self._run.current_index if self._run else None

    @property
    def outcome(self) -> Optional[RunOutcome]:
        return self._run.outcome if self._run else None

    @property
    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    async def start(self, entry_ids: Sequence[str]) -> Run:
        """
        Run a chain to completion.

        The busy and empty-chain checks happen before the first suspension
        point, so a rejected start never creates a Run.

        Returns:
            The final Run (also available as self.run)

        Raises:
            ExecutorBusyError: If a chain is already running
            ChainSetupError: If entry_ids is empty
        """
        if self._running:
            raise ExecutorBusyError("A chain is already running")
        if not entry_ids:
            logger.warning("No servers in orchestration chain")
            raise ChainSetupError("No servers in orchestration chain")

        self._running = True
        self._cancel_requested = False
        try:
            return await self._run_chain(list(entry_ids))
        finally:
            self._running = False

    def cancel(self) -> None:
        """Ask the running chain to stop before its next step."""
        if not self._running:
            return
        logger.info("Cancellation requested")
        self._cancel_requested = True

    def reset(self) -> None:
        """
        Discard the current run and return to idle.

        Raises:
            ExecutorBusyError: If a chain is running
        """
        if self._running:
            raise ExecutorBusyError("Cannot reset while a chain is running")
        self._run = None

    # -------------------------------------------------------------------------
    # Run loop
    # -------------------------------------------------------------------------

    async def _run_chain(self, entry_ids: List[str]) -> Run:
        run_id = str(uuid.uuid4())
        started_at = _utcnow()

        try:
            steps = resolve_chain(entry_ids, self.catalog)
        except ChainSetupError:
            raise
        except Exception as e:
            # Nothing can be attempted; report a run-level error instead of raising
            logger.error(f"Chain {run_id} setup failed: {e}")
            run = Run(
                run_id=run_id,
                started_at=started_at,
                outcome=RunOutcome(
                    status=RunStatus.ERROR,
                    total_steps=len(entry_ids),
                    completed_steps=0,
                    error=str(e) or type(e).__name__,
                ),
            )
            self._publish(run)
            self._finish(run)
            return run

        n = len(steps)
        self._publish(Run(run_id=run_id, started_at=started_at, steps=steps))
        self._emit("chain_started", self._run)
        logger.info(f"Starting chain {run_id} with {n} steps")

        carried: Any = None
        cancelled = False
        for i in range(n):
            if self._cancel_requested:
                logger.warning(f"Chain {run_id} cancelled before step {i + 1}/{n}")
                cancelled = True
                break

            self._publish(replace(self._run, current_index=i))
            logger.info(f"Step {i + 1}/{n}: {steps[i].display_name}")
            logger.debug(f"Step {i + 1} input: {carried!r}")

            step = await self._execute_step(i, carried)

            if step.status == StepStatus.COMPLETED:
                carried = step.output
            elif self.carry_forward == CarryForward.NULL:
                carried = None

            if self.inter_step_delay_s and i < n - 1:
                await self.sleep(self.inter_step_delay_s)

        run = replace(
            self._run,
            current_index=None,
            outcome=summarize(self._run.steps, cancelled=cancelled),
        )
        self._publish(run)
        self._finish(run)
        return run

    async def _execute_step(self, index: int, input: Any) -> Step:
        """Drive one step from pending to completed or failed."""
        step = self._run.steps[index]

        try:
            entry = self.catalog.find_entry(step.entry_id)
            lookup_error = None if entry is not None else f"Server not found: {step.entry_id}"
        except Exception as e:
            lookup_error = f"Catalog lookup failed for {step.entry_id}: {e}"

        if lookup_error:
            logger.warning(f"Step {step.step_id} failed: {lookup_error}")
            failed = replace(
                step,
                status=StepStatus.FAILED,
                input=input,
                error=lookup_error,
                started_at=_utcnow(),
                duration_ms=0,
            )
            self._set_step(index, failed)
            return failed

        running = replace(step, status=StepStatus.RUNNING, input=input, started_at=_utcnow())
        self._set_step(index, running)
        start = self.clock()

        try:
            output = await asyncio.wait_for(
                self._invoke(step.entry_id, input),
                timeout=self.step_timeout_s,
            )
        except asyncio.TimeoutError:
            finished = replace(
                running,
                status=StepStatus.FAILED,
                error=f"Timed out after {self.step_timeout_s:g}s",
                duration_ms=self._elapsed_ms(start),
            )
        except Exception as e:
            finished = replace(
                running,
                status=StepStatus.FAILED,
                error=str(e) or type(e).__name__,
                duration_ms=self._elapsed_ms(start),
            )
        else:
            finished = replace(
                running,
                status=StepStatus.COMPLETED,
                output=output,
                duration_ms=self._elapsed_ms(start),
            )

        if finished.status == StepStatus.FAILED:
            logger.warning(f"Step {step.step_id} failed: {finished.error}")
        else:
            logger.info(f"Step {step.step_id} completed in {finished.duration_ms}ms")

        self._set_step(index, finished)
        return finished

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _elapsed_ms(self, start: float) -> int:
        return int(round((self.clock() - start) * 1000))

    async def _invoke(self, entry_id: str, input: Any) -> Any:
        """Call the action, keeping its own timeouts apart from step_timeout_s."""
        try:
            return await self.actions.invoke(entry_id, input)
        except asyncio.TimeoutError as e:
            raise ActionTimeoutError(str(e) or "Action timed out") from e

    def _emit(self, event: str, *args: Any) -> None:
        """Write to the event log; a failed write never stops the run."""
        if not self.event_client:
            return
        try:
            getattr(self.event_client, event)(*args)
        except OSError as e:
            logger.warning(f"Event log write failed: {e}")

    def _publish(self, run: Run) -> None:
        self._run = run
        if self.on_update:
            self.on_update(run)

    def _set_step(self, index: int, step: Step) -> None:
        steps = list(self._run.steps)
        steps[index] = step
        self._publish(replace(self._run, steps=tuple(steps)))
        self._emit("step_changed", self._run, index, step)

    def _finish(self, run: Run) -> None:
        outcome = run.outcome
        if outcome.status == RunStatus.SUCCESS:
            logger.info(f"Chain {run.run_id}: {outcome.summary()}")
        elif outcome.status == RunStatus.PARTIAL:
            logger.warning(f"Chain {run.run_id}: {outcome.summary()}")
        else:
            logger.error(f"Chain {run.run_id}: {outcome.summary()}")

        self._emit("chain_finished", run)
        if self.on_complete:
            self.on_complete(run)


# =============================================================================
# Output Rendering
# =============================================================================

def format_run(run: Run) -> List[str]:
    """Render a Run as step lines followed by the summary line."""
    lines = []
    for i, step in enumerate(run.steps, 1):
        line = f"{i:>2}. [{step.status.value}] {step.display_name}"
        if step.duration_ms is not None:
            line += f" ({step.duration_ms / 1000:.1f}s)"
        lines.append(line)
        if step.error:
            lines.append(f"      error: {step.error}")
    if run.outcome is not None:
        lines.append(run.outcome.summary())
    return lines
