"""In-memory snapshot of the creator directory for one backend.

The resident snapshot is an immutable object swapped by reference. A reader
that grabs ``snapshot()`` once sees one consistent identity and entry tuple
for as long as it holds it, regardless of concurrent ``replace_all`` calls.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from creatorindex.models.creator import CreatorIndexEntry

log = structlog.get_logger()


@dataclass(frozen=True)
class IndexSnapshot:
    identity: str
    entries: tuple[CreatorIndexEntry, ...]
    built_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __len__(self) -> int:
        return len(self.entries)


class IndexStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: IndexSnapshot | None = None

    def replace_all(self, entries: Iterable[CreatorIndexEntry], identity: str) -> IndexSnapshot:
        """Swap in a new snapshot. The previous one is dropped entirely."""
        snapshot = IndexSnapshot(identity=identity, entries=tuple(entries))
        with self._lock:
            self._snapshot = snapshot
        log.debug("creator_index_store_replaced", identity=identity, size=len(snapshot))
        return snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None

    def snapshot(self) -> IndexSnapshot | None:
        return self._snapshot

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    def current_identity(self) -> str | None:
        snapshot = self._snapshot
        return snapshot.identity if snapshot is not None else None

    def size(self) -> int:
        snapshot = self._snapshot
        return len(snapshot) if snapshot is not None else 0

    def entries(self) -> tuple[CreatorIndexEntry, ...]:
        snapshot = self._snapshot
        return snapshot.entries if snapshot is not None else ()
