"""Shared fixtures for mcp-chain tests."""

from typing import Any, Callable, Dict, List, Tuple

import pytest

from mcpchain.catalog import InMemoryCatalog
from mcpchain.executor import ChainExecutor
from mcpchain.schemas import Entry


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000


class ScriptedActions:
    """ActionProvider whose per-entry behaviour is set up by each test."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: List[Tuple[str, Any]] = []
        self.behaviours: Dict[str, Tuple[int, Any]] = {}
        self.hooks: Dict[str, Callable[[], None]] = {}

    def succeed(self, entry_id: str, output: Any, ms: int = 0) -> None:
        self.behaviours[entry_id] = (ms, output)

    def fail(self, entry_id: str, error: BaseException, ms: int = 0) -> None:
        self.behaviours[entry_id] = (ms, error)

    async def invoke(self, entry_id: str, input: Any) -> Any:
        self.calls.append((entry_id, input))
        if entry_id in self.hooks:
            self.hooks[entry_id]()
        ms, result = self.behaviours.get(entry_id, (0, {"entry": entry_id}))
        self.clock.advance_ms(ms)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    return InMemoryCatalog([
        Entry(id="a", name="alpha", category="Communication"),
        Entry(id="b", name="beta", category="Development"),
        Entry(id="c", name="gamma", category="Database"),
    ])


@pytest.fixture
def actions(clock):
    return ScriptedActions(clock)


@pytest.fixture
def executor(catalog, actions, clock):
    return ChainExecutor(catalog, actions, clock=clock)
