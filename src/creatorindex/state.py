"""Application state wiring.

``app_lifespan`` builds every component once at startup and tears them down
on exit. UI state holders receive the resulting ``AppState`` (or just its
``manager``) by injection; nothing in the package holds module-level state.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from creatorindex.cache import Cache
from creatorindex.config import Settings
from creatorindex.fetcher import Fetcher, build_http_client
from creatorindex.logging_config import setup_logging
from creatorindex.manager import IndexManager
from creatorindex.search import SearchEngine
from creatorindex.store import IndexStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    cache: Cache
    fetcher: Fetcher
    store: IndexStore
    search: SearchEngine
    manager: IndexManager


@asynccontextmanager
async def app_lifespan(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[AppState]:
    """Create and wire all components; close them on exit.

    Logging is configured from ``settings.logging`` first. A caller-supplied
    ``http_client`` is used as-is and not closed here.
    """
    settings = settings or Settings()
    setup_logging(settings.logging)

    db_path = Path(settings.cache.db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Path(settings.cache.index_dir).expanduser().mkdir(parents=True, exist_ok=True)

    owns_client = http_client is None
    client = http_client or build_http_client(settings.fetcher)

    try:
        async with aiosqlite.connect(db_path) as db:
            cache = Cache(db)
            await cache.init_db()
            await cache.cleanup_expired()

            fetcher = Fetcher(client, cache, settings.cache, settings.fetcher)
            store = IndexStore()
            search = SearchEngine.from_settings(store, settings.search)
            manager = IndexManager(
                fetcher,
                store,
                search,
                sources=settings.sources,
                progress_every=settings.search.progress_every,
            )
            state = AppState(
                settings=settings,
                http_client=client,
                cache=cache,
                fetcher=fetcher,
                store=store,
                search=search,
                manager=manager,
            )
            log.info("creator_index_started", db_path=str(db_path))
            try:
                yield state
            finally:
                await manager.aclose()
    finally:
        if owns_client:
            await client.aclose()
        log.info("creator_index_stopped")
