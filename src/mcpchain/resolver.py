# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Resolver - Turn a chain of entry ids into pending Steps.

Display names are looked up once, here. Entries the catalog does not know
get the UNKNOWN_SERVER name; the missing entry is reported later, when the
step runs, so one bad id never prevents the rest of the chain from running.
"""

import logging
from collections import Counter
from typing import Sequence, Tuple

from mcpchain.catalog import Catalog
from mcpchain.schemas import UNKNOWN_SERVER, Step


logger = logging.getLogger(__name__)


class ChainSetupError(Exception):
    """Raised when a chain cannot be started at all."""
    pass


def step_ids_for(entry_ids: Sequence[str]) -> Tuple[str, ...]:
    """
    Derive unique step ids from entry ids.

    step-a, step-b, step-a-2, step-a-3, ...

    An entry id that itself looks like a suffixed id (a-2) never reuses a
    step id already issued; the suffix is bumped until it is free.
    """
    seen: Counter = Counter()
    issued = set()
    step_ids = []
    for entry_id in entry_ids:
        seen[entry_id] += 1
        n = seen[entry_id]
        candidate = f"step-{entry_id}" if n == 1 else f"step-{entry_id}-{n}"
        while candidate in issued:
            n += 1
            candidate = f"step-{entry_id}-{n}"
        seen[entry_id] = n
        issued.add(candidate)
        step_ids.append(candidate)
    return tuple(step_ids)


def resolve_chain(entry_ids: Sequence[str], catalog: Catalog) -> Tuple[Step, ...]:
    """
    Resolve entry ids into an ordered tuple of pending Steps.

    Args:
        entry_ids: Chain of entry ids, duplicates allowed
        catalog: Lookup used for display names

    Returns:
        One pending Step per entry id, in chain order

    Raises:
        ChainSetupError: If the chain is empty
    """
    if not entry_ids:
        raise ChainSetupError("No servers in orchestration chain")

    steps = []
    for step_id, entry_id in zip(step_ids_for(entry_ids), entry_ids):
        entry = catalog.find_entry(entry_id)
        if entry is None:
            logger.warning(f"Entry not in catalog: {entry_id}")
            display_name = UNKNOWN_SERVER
        else:
            display_name = entry.name
        steps.append(Step(step_id=step_id, entry_id=entry_id, display_name=display_name))

    return tuple(steps)
