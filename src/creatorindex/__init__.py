"""Creator directory index and search-as-you-type engine."""

from __future__ import annotations

from creatorindex.errors import CreatorIndexError, ErrorCode, FetchError
from creatorindex.logging_config import setup_logging
from creatorindex.manager import IndexManager
from creatorindex.models import CreatorIndexEntry, IndexState, IndexStatus, PrepareOutcome
from creatorindex.sources import ApiSource
from creatorindex.state import AppState, app_lifespan

__all__ = [
    "ApiSource",
    "AppState",
    "CreatorIndexEntry",
    "CreatorIndexError",
    "ErrorCode",
    "FetchError",
    "IndexManager",
    "IndexState",
    "IndexStatus",
    "PrepareOutcome",
    "app_lifespan",
    "setup_logging",
]
