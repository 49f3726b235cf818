"""Creator index lifecycle: fetch → parse → swap, one backend at a time.

``IndexManager`` is the only object UI state holders talk to. Concurrency
rules, all enforced on the event loop thread:

- Concurrent ``prepare`` calls for one identity share a single task; forced
  and unforced calls run separately.
- A forced refresh of the resident identity keeps it searchable until the
  new snapshot replaces it.
- A run only installs its snapshot if its identity is still the desired one
  and no ``clear()`` happened since it started; otherwise it reports
  ``PrepareOutcome.SUPERSEDED`` and leaves the store untouched.
- Parsing runs in a worker thread so the loop keeps serving other work.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING

import structlog

from creatorindex.errors import CreatorIndexError, ErrorCode
from creatorindex.models.status import IndexState, IndexStatus, PrepareOutcome
from creatorindex.parser import parse_file
from creatorindex.sources import normalize_base_url

if TYPE_CHECKING:
    from creatorindex.config import SourcesSettings
    from creatorindex.fetcher import Fetcher
    from creatorindex.models.creator import CreatorIndexEntry
    from creatorindex.search import SearchEngine
    from creatorindex.sources import ApiSource
    from creatorindex.store import IndexStore

log = structlog.get_logger()


class IndexManager:
    def __init__(
        self,
        fetcher: Fetcher,
        store: IndexStore,
        search_engine: SearchEngine,
        *,
        sources: SourcesSettings | None = None,
        progress_every: int = 10_000,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._search = search_engine
        self._sources = sources
        self._progress_every = progress_every

        self._state = IndexState.EMPTY
        self._desired: str | None = None
        self._epoch = 0  # bumped by clear(); runs from an older epoch are stale
        self._last_error: BaseException | None = None
        # Keyed by (identity, force): a forced refresh never joins a cached-copy run.
        self._inflight: dict[tuple[str, bool], asyncio.Task[PrepareOutcome]] = {}
        self._tasks: set[asyncio.Task[PrepareOutcome]] = set()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is IndexState.READY and self._store.is_ready

    @property
    def index_size(self) -> int:
        return self._store.size()

    @property
    def current_identity(self) -> str | None:
        return self._store.current_identity()

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    def status(self) -> IndexStatus:
        return IndexStatus(
            state=self._state,
            identity=self._desired,
            index_size=self.index_size,
            last_error=str(self._last_error) if self._last_error is not None else None,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def resolve(self, identity: str | ApiSource) -> str:
        return normalize_base_url(identity, self._sources)

    async def prepare(self, identity: str | ApiSource, *, force: bool = False) -> PrepareOutcome:
        """Make ``identity`` the resident index, downloading and parsing as needed.

        With ``force`` the cached file is ignored and a fresh copy downloaded;
        the current snapshot stays searchable until the new one replaces it.
        Raises ``CreatorIndexError`` when the fetch or parse fails.
        """
        target = self.resolve(identity)

        if not force and self._store.current_identity() == target:
            # The snapshot is already resident; any run for another identity
            # still in flight becomes stale because _desired moves back here.
            self._desired = target
            self._state = IndexState.READY
            log.info("creator_index_already_prepared", identity=target)
            return PrepareOutcome.ALREADY_READY

        self._desired = target
        key = (target, force)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._run(target, self._epoch, force), name=f"creator-index:{target}"
            )
            self._inflight[key] = task
            self._tasks.add(task)
            task.add_done_callback(partial(self._forget, key))
        else:
            log.debug("creator_index_prepare_joined", identity=target)
        return await asyncio.shield(task)

    def _forget(self, key: tuple[str, bool], task: asyncio.Task[PrepareOutcome]) -> None:
        self._tasks.discard(task)
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def _is_current(self, identity: str, epoch: int) -> bool:
        return self._desired == identity and self._epoch == epoch

    async def _run(self, identity: str, epoch: int, force: bool) -> PrepareOutcome:
        refreshing = force and self._store.current_identity() == identity
        if self._is_current(identity, epoch) and not refreshing:
            # A forced refresh of the resident identity stays READY so the
            # old snapshot remains searchable until the swap.
            self._state = IndexState.PREPARING
        log.info("creator_index_prepare_start", identity=identity, force=force)

        try:
            if force:
                path = await self._fetcher.download_index(identity)
            else:
                path = await self._fetcher.obtain(identity)
            try:
                result = await asyncio.to_thread(
                    parse_file, path, progress_every=self._progress_every
                )
            except OSError as exc:
                raise CreatorIndexError(
                    ErrorCode.INDEX_PARSE_FAILED, f"Could not read index file {path}: {exc}", True
                ) from exc
        except asyncio.CancelledError:
            if self._is_current(identity, epoch):
                self._reset()
            raise
        except Exception as exc:
            if not self._is_current(identity, epoch):
                log.warning("creator_index_prepare_superseded", identity=identity, error=str(exc))
                return PrepareOutcome.SUPERSEDED
            self._store.clear()
            self._state = IndexState.FAILED
            self._last_error = exc
            log.error("creator_index_prepare_failed", identity=identity, exc_info=True)
            raise

        if not self._is_current(identity, epoch):
            log.info(
                "creator_index_prepare_superseded",
                identity=identity,
                desired=self._desired,
                discarded=len(result.entries),
            )
            return PrepareOutcome.SUPERSEDED

        self._store.replace_all(result.entries, identity)
        self._state = IndexState.READY
        self._last_error = None
        log.info(
            "creator_index_prepared",
            identity=identity,
            size=len(result.entries),
            skipped=result.skipped,
        )
        return PrepareOutcome.PREPARED

    def _reset(self) -> None:
        self._store.clear()
        self._state = IndexState.EMPTY
        self._desired = None
        self._last_error = None

    def clear(self) -> None:
        """Drop the snapshot and forget the desired identity.

        Runs still in flight are left to finish but their results are
        discarded.
        """
        self._epoch += 1
        self._inflight.clear()
        self._reset()
        log.info("creator_index_cleared")

    async def invalidate(self, identity: str | ApiSource) -> None:
        """Delete the on-disk copy so the next non-resident prepare downloads."""
        await self._fetcher.invalidate(self.resolve(identity))

    async def aclose(self) -> None:
        """Cancel in-flight runs. Used at shutdown."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Queries (never raise)
    # ------------------------------------------------------------------

    def search(self, query: str) -> list[CreatorIndexEntry]:
        if not self.is_ready:
            return []
        return self._search.search(query)

    def find_exact(self, service: str, user_id: str) -> CreatorIndexEntry | None:
        if not self.is_ready:
            return None
        return self._search.find_exact(service, user_id)

    def popular(self, limit: int | None = None) -> list[CreatorIndexEntry]:
        if not self.is_ready:
            return []
        return self._search.popular(limit)
