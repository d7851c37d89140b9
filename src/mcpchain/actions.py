# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Actions - per-entry work performed by chain steps.

The executor only depends on ActionProvider.invoke(entry_id, input).
ActionRegistry is the standard provider: actions registered by entry id
(or by entry name, when given a catalog), with a FallbackAction for
entries that have nothing registered.
"""

import asyncio
import copy
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

from mcpchain.catalog import Catalog


logger = logging.getLogger(__name__)

# An action takes the previous step's output and returns this step's output
Action = Callable[[Any], Awaitable[Any]]

Sleep = Callable[[float], Awaitable[None]]


class ActionProvider(Protocol):
    """Performs the work for one entry."""

    async def invoke(self, entry_id: str, input: Any) -> Any:
        ...


class FallbackAction:
    """Generic action for entries without a registered one.

    Succeeds after a random delay and returns a synthesized payload marked
    with ``"fallback": True`` so it can be told apart from real results.
    """

    def __init__(
        self,
        delay_range: Tuple[float, float] = (1.0, 2.5),
        rng: Optional[random.Random] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        low, high = delay_range
        if low < 0 or high < low:
            raise ValueError(f"Invalid delay range: {delay_range}")
        self.delay_range = (low, high)
        self.rng = rng or random.Random()
        self.sleep = sleep

    async def __call__(self, entry_id: str, input: Any, name: Optional[str] = None) -> Dict[str, Any]:
        low, high = self.delay_range
        delay = self.rng.uniform(low, high)
        logger.debug(f"Fallback action for {entry_id} sleeping {delay:.2f}s")
        await self.sleep(delay)
        return {
            "server_id": entry_id,
            "server_name": name or entry_id,
            "execution_time": int(time.time() * 1000),
            "status": "completed",
            "operations_performed": self.rng.randint(1, 10),
            "fallback": True,
        }


class ActionRegistry:
    """ActionProvider keyed by entry id or entry name."""

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        fallback: Optional[FallbackAction] = None,
        actions: Optional[Dict[str, Action]] = None,
    ):
        """
        Args:
            catalog: When set, actions may also be registered under the
                entry's name (the marketplace keys behaviours by name)
            fallback: Action used when nothing is registered
            actions: Initial actions, keyed by entry id or name
        """
        self.catalog = catalog
        self.fallback = fallback or FallbackAction()
        self._actions: Dict[str, Action] = dict(actions or {})

    def register(self, key: str, action: Action) -> None:
        """Register an action under an entry id or name."""
        self._actions[key] = action

    def lookup(self, entry_id: str) -> Optional[Action]:
        """Find the registered action for an entry, by id first, then name."""
        if entry_id in self._actions:
            return self._actions[entry_id]
        if self.catalog is not None:
            entry = self.catalog.find_entry(entry_id)
            if entry is not None and entry.name in self._actions:
                return self._actions[entry.name]
        return None

    async def invoke(self, entry_id: str, input: Any) -> Any:
        action = self.lookup(entry_id)
        if action is not None:
            return await action(input)

        name = None
        if self.catalog is not None:
            entry = self.catalog.find_entry(entry_id)
            name = entry.name if entry else None
        logger.info(f"No action registered for {entry_id}, using fallback")
        return await self.fallback(entry_id, input, name=name)


# =============================================================================
# Simulated marketplace servers
# =============================================================================

# name → (delay seconds, output payload)
_DEMO_BEHAVIOURS: Dict[str, Tuple[float, Dict[str, Any]]] = {
    "slack-connector": (1.5, {
        "channels": ["#general", "#dev", "#random"],
        "messages_sent": 3,
        "users_notified": 12,
    }),
    "github-integration": (2.0, {
        "repositories": ["repo1", "repo2"],
        "pull_requests": 5,
        "issues_created": 2,
        "commits_analyzed": 23,
    }),
    "postgres-client": (1.2, {
        "tables_queried": 4,
        "records_processed": 1250,
        "queries_executed": 8,
    }),
    "notion-sync": (1.8, {
        "pages_updated": 7,
        "blocks_created": 23,
        "sync_status": "completed",
    }),
    "openai-assistant": (2.5, {
        "tokens_used": 1250,
        "responses_generated": 3,
        "function_calls": 5,
        "analysis_complete": True,
    }),
    "stripe-payments": (1.6, {
        "payments_processed": 5,
        "total_amount": 2450.00,
        "subscriptions_created": 2,
    }),
    "discord-bot": (1.4, {
        "commands_executed": 8,
        "messages_sent": 15,
        "users_engaged": 23,
    }),
    "mongodb-client": (1.3, {
        "documents_processed": 156,
        "collections_updated": 3,
        "indexes_optimized": 2,
    }),
}


def _simulated(delay: float, payload: Dict[str, Any], sleep: Sleep) -> Action:
    async def action(input: Any) -> Dict[str, Any]:
        await sleep(delay)
        return copy.deepcopy(payload)
    return action


def demo_actions(time_scale: float = 1.0, sleep: Sleep = asyncio.sleep) -> Dict[str, Action]:
    """
    Simulated actions for the seeded marketplace servers, keyed by name.

    Args:
        time_scale: Multiplier applied to every simulated delay (0 disables them)
        sleep: Awaitable sleep, replaceable in tests
    """
    return {
        name: _simulated(delay * time_scale, payload, sleep)
        for name, (delay, payload) in _DEMO_BEHAVIOURS.items()
    }
