"""Tests for chain schemas."""

from mcpchain.schemas import RunOutcome, RunStatus, StepStatus


class TestStepStatus:
    def test_terminal_states(self):
        assert StepStatus.COMPLETED.is_terminal
        assert StepStatus.FAILED.is_terminal
        assert not StepStatus.PENDING.is_terminal
        assert not StepStatus.RUNNING.is_terminal


class TestRunOutcomeSummary:
    """Tests for RunOutcome.summary."""

    def test_success(self):
        outcome = RunOutcome(RunStatus.SUCCESS, total_steps=3, completed_steps=3, total_duration_ms=4500)
        assert outcome.summary() == "Chain completed in 4.5s"

    def test_partial(self):
        outcome = RunOutcome(RunStatus.PARTIAL, total_steps=4, completed_steps=3, failed_steps=1)
        assert outcome.summary() == "Partial completion: 3/4 steps completed"

    def test_partial_cancelled(self):
        outcome = RunOutcome(RunStatus.PARTIAL, total_steps=4, completed_steps=1, cancelled=True)
        assert outcome.summary().endswith("(cancelled)")

    def test_error(self):
        outcome = RunOutcome(RunStatus.ERROR, total_steps=2, completed_steps=0, error="catalog offline")
        assert outcome.summary() == "Execution failed: catalog offline"
