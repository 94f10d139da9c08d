"""Mutation records for ProjectGraph operations.

Every change to a ProjectGraph is recorded as a MutationEntry in an
append-only MutationLog. References that cannot be resolved while
integrating or creating entities are reported as UnresolvedReference
values carried by UnresolvedReferenceError.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class UnresolvedReference:
    """A name or id that does not resolve to an entity.

    Attributes:
        source: Name of the entity holding the reference.
        kind: Reference kind ("swc", "interface", "runnable", "port",
            "data_element", "data_type", "instance").
        target: The unresolved name or id.
    """

    source: str
    kind: str
    target: str

    def __str__(self) -> str:
        return f"{self.source} --[{self.kind}]--> {self.target} (missing)"


class UnresolvedReferenceError(ValueError):
    """Raised before any mutation when references cannot be resolved."""

    def __init__(self, references: list[UnresolvedReference]):
        self.references = list(references)
        details = "; ".join(str(ref) for ref in self.references)
        super().__init__(f"{len(self.references)} unresolved reference(s): {details}")


@dataclass
class MutationEntry:
    """Single mutation operation record.

    Attributes:
        operation: Operation type (e.g., "create_swc", "delete_interface").
        target_id: Primary target of the mutation.
        before_state: State before mutation (empty for creations).
        after_state: State after mutation (empty for deletions).
        cascaded: Ids removed as a consequence of a deletion, in removal order.
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation occurred.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    cascaded: list[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"


class MutationLog:
    """Append-only mutation history of one ProjectGraph, oldest first."""

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []
        self._by_id: dict[str, MutationEntry] = {}

    def append(self, entry: MutationEntry) -> None:
        self._entries.append(entry)
        self._by_id[entry.id] = entry

    def iter_entries(self) -> Iterator[MutationEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        return self._entries[-1] if self._entries else None

    def find_by_id(self, mutation_id: str) -> MutationEntry | None:
        return self._by_id.get(mutation_id)

    def entries_for(self, target_id: str) -> list[MutationEntry]:
        """All entries whose primary target is target_id."""
        return [entry for entry in self._entries if entry.target_id == target_id]

    def entries_since(self, mutation_id: str) -> list[MutationEntry]:
        """Entries from mutation_id (inclusive) to the newest one.

        Raises:
            ValueError: If mutation_id is not in the log.
        """
        entry = self._by_id.get(mutation_id)
        if entry is None:
            raise ValueError(f"Mutation {mutation_id} not found in log")
        return self._entries[self._entries.index(entry):]

    def clear(self) -> None:
        self._entries.clear()
        self._by_id.clear()


__all__ = [
    "MutationEntry",
    "MutationLog",
    "UnresolvedReference",
    "UnresolvedReferenceError",
]
