# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Catalog - entry lookup for chain resolution and execution.

The executor only ever calls find_entry(). The catalog itself (search,
CRUD, installation bookkeeping) lives in the marketplace application.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Union

import yaml

from mcpchain.schemas import Entry


class CatalogError(Exception):
    """Raised when a catalog file cannot be loaded."""
    pass


class Catalog(Protocol):
    """Read-only entry lookup."""

    def find_entry(self, entry_id: str) -> Optional[Entry]:
        ...


class InMemoryCatalog:
    """Catalog backed by a dict of entries keyed by id."""

    def __init__(self, entries: Iterable[Entry] = ()):
        self._entries: Dict[str, Entry] = {}
        for entry in entries:
            self._entries[entry.id] = entry

    def find_entry(self, entry_id: str) -> Optional[Entry]:
        return self._entries.get(entry_id)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def _entry_from_dict(data: Dict[str, Any], index: int) -> Entry:
    """Build an Entry from one item of the catalog file."""
    if not isinstance(data, dict):
        raise CatalogError(f"Entry {index} must be a mapping, got {type(data).__name__}")

    entry_id = data.get("id")
    if not entry_id:
        raise CatalogError(f"Entry {index} is missing 'id'")

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise CatalogError(f"Entry '{entry_id}': tags must be a list")

    return Entry(
        id=str(entry_id),
        name=str(data.get("name") or entry_id),
        category=str(data.get("category", "")),
        description=str(data.get("description", "")),
        tags=tuple(str(t) for t in tags),
    )


def load_catalog(path: Union[str, Path]) -> InMemoryCatalog:
    """
    Load a catalog from a YAML file.

    Expected layout:

        entries:
          - id: slack-connector
            name: slack-connector
            category: Communication
            description: Slack workspace integration
            tags: [messaging]

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogError: If the file is not a valid catalog
    """
    catalog_path = Path(path).expanduser()
    if not catalog_path.exists():
        raise FileNotFoundError(f"Catalog not found: {catalog_path}")

    try:
        data = yaml.safe_load(catalog_path.read_text())
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {catalog_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
        raise CatalogError(f"Catalog {catalog_path} must contain an 'entries' list")

    entries: List[Entry] = []
    seen = set()
    for i, item in enumerate(data["entries"]):
        entry = _entry_from_dict(item, i)
        if entry.id in seen:
            raise CatalogError(f"Duplicate entry id: {entry.id}")
        seen.add(entry.id)
        entries.append(entry)

    return InMemoryCatalog(entries)


# Servers seeded by the marketplace's initial migration
_DEMO_ENTRIES = [
    ("slack-connector", "Communication",
     "Secure Slack workspace integration with advanced message handling and channel management",
     ("messaging", "collaboration", "real-time")),
    ("github-integration", "Development",
     "Complete GitHub API wrapper with repository management, PR automation, and code analysis",
     ("git", "code", "automation")),
    ("postgres-client", "Database",
     "High-performance PostgreSQL connector with query optimization and transaction management",
     ("database", "sql", "postgres")),
    ("notion-sync", "Productivity",
     "Bidirectional Notion workspace synchronization with real-time updates and conflict resolution",
     ("notion", "sync", "productivity")),
    ("stripe-payments", "Finance",
     "Comprehensive Stripe integration for payment processing with subscription management",
     ("payments", "stripe", "finance")),
    ("openai-assistant", "AI/ML",
     "Advanced OpenAI GPT integration with function calling and conversation management",
     ("ai", "gpt", "assistant")),
    ("discord-bot", "Communication",
     "Full-featured Discord bot framework with slash commands and event handling",
     ("discord", "bot", "gaming")),
    ("mongodb-client", "Database",
     "Modern MongoDB connector with aggregation pipeline support and schema validation",
     ("database", "nosql", "mongodb")),
]


def demo_catalog() -> InMemoryCatalog:
    """Catalog of the marketplace's seeded servers (id == name)."""
    return InMemoryCatalog(
        Entry(id=name, name=name, category=category, description=description, tags=tags)
        for name, category, description, tags in _DEMO_ENTRIES
    )
