from __future__ import annotations

from creatorindex.models.cache import IndexFileEntry
from creatorindex.models.creator import CreatorIndexEntry
from creatorindex.models.status import IndexState, IndexStatus, PrepareOutcome

__all__ = [
    # creator
    "CreatorIndexEntry",
    # cache
    "IndexFileEntry",
    # status
    "IndexState",
    "IndexStatus",
    "PrepareOutcome",
]
