"""Substring search over the resident snapshot.

Matching is plain containment of the lowercased, trimmed query in each
entry's ``name_key``, in file order, truncated at the first ``max_results``
hits. There is no ranking. Search never raises: an empty store or a short
query yields an empty list.
"""

from __future__ import annotations

from itertools import islice
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from creatorindex.config import SearchSettings
    from creatorindex.models.creator import CreatorIndexEntry
    from creatorindex.store import IndexStore

log = structlog.get_logger()


class SearchEngine:
    def __init__(
        self,
        store: IndexStore,
        *,
        max_results: int = 50,
        min_query_length: int = 2,
        popular_limit: int = 100,
    ) -> None:
        self._store = store
        self.max_results = max_results
        self.min_query_length = min_query_length
        self.popular_limit = popular_limit

    @classmethod
    def from_settings(cls, store: IndexStore, settings: SearchSettings) -> SearchEngine:
        return cls(
            store,
            max_results=settings.max_results,
            min_query_length=settings.min_query_length,
            popular_limit=settings.popular_limit,
        )

    def search(self, query: str) -> list[CreatorIndexEntry]:
        q = query.strip().lower()
        if len(q) < self.min_query_length:
            return []
        snapshot = self._store.snapshot()
        if snapshot is None:
            return []

        results = list(
            islice((e for e in snapshot.entries if q in e.name_key), self.max_results)
        )
        log.debug("creator_search", query=q, results=len(results))
        return results

    def find_exact(self, service: str, user_id: str) -> CreatorIndexEntry | None:
        """First entry matching both fields; duplicates are not reported."""
        for entry in self._store.entries():
            if entry.service == service and entry.user_id == user_id:
                return entry
        return None

    def popular(self, limit: int | None = None) -> list[CreatorIndexEntry]:
        """The first ``limit`` entries in file order.

        The index carries no popularity signal; this is simply the head of
        the file.
        """
        if limit is None:
            limit = self.popular_limit
        if limit <= 0:
            return []
        return list(self._store.entries()[:limit])
