"""SQLite metadata for downloaded creator index files.

The index itself is a plain text file on disk; this table records where each
backend's file lives and when it expires, which is what freshness checks read.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers,
which then re-download), write failures are logged and ignored (the freshly
downloaded file is still used for this run).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

if TYPE_CHECKING:
    from creatorindex.models.cache import IndexFileEntry

log = structlog.get_logger()

_CREATE_INDEX_TABLE = """
CREATE TABLE IF NOT EXISTS index_files (
    identity    TEXT PRIMARY KEY,
    index_url   TEXT NOT NULL,
    path        TEXT NOT NULL,
    size_bytes  INTEGER NOT NULL DEFAULT 0,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
)
"""

_CREATE_EXPIRES_INDEX = (
    "CREATE INDEX IF NOT EXISTS idx_index_files_expires ON index_files(expires_at)"
)


class Cache:
    """SQLite-backed record of cached index files, one row per backend identity."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_INDEX_TABLE)
        await self._db.execute(_CREATE_EXPIRES_INDEX)
        await self._db.commit()

    async def get_index(self, identity: str) -> IndexFileEntry | None:
        """Read an index file record. Returns ``None`` on miss or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT identity, index_url, path, size_bytes, fetched_at, expires_at "
                "FROM index_files WHERE identity = ?",
                (identity,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            from creatorindex.models.cache import IndexFileEntry

            fetched_at = datetime.fromisoformat(row[4])
            expires_at = datetime.fromisoformat(row[5])
            stale = datetime.now(UTC) > expires_at

            return IndexFileEntry(
                identity=row[0],
                index_url=row[1],
                path=row[2],
                size_bytes=row[3],
                fetched_at=fetched_at,
                expires_at=expires_at,
                stale=stale,
            )
        except aiosqlite.Error:
            log.warning("cache_read_error", key=f"index:{identity}", exc_info=True)
            return None

    async def set_index(
        self,
        identity: str,
        index_url: str,
        path: str,
        size_bytes: int,
        ttl_hours: int,
    ) -> None:
        """Record a freshly downloaded index file. Non-fatal on failure."""
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(hours=ttl_hours)
            await self._db.execute(
                "INSERT OR REPLACE INTO index_files "
                "(identity, index_url, path, size_bytes, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (identity, index_url, path, size_bytes, now.isoformat(), expires_at.isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=f"index:{identity}", exc_info=True)

    async def delete_index(self, identity: str) -> None:
        """Forget the record for ``identity``. Non-fatal on failure."""
        try:
            await self._db.execute("DELETE FROM index_files WHERE identity = ?", (identity,))
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=f"index:{identity}", exc_info=True)

    async def cleanup_expired(self) -> int:
        """Delete records (and their files) expired more than 7 days ago.

        Returns the number of records removed. Non-fatal on failure.
        """
        try:
            cutoff = (datetime.now(UTC) - timedelta(days=7)).isoformat()
            cursor = await self._db.execute(
                "SELECT identity, path FROM index_files WHERE expires_at < ?", (cutoff,)
            )
            rows = await cursor.fetchall()
            for _, path in rows:
                Path(path).unlink(missing_ok=True)

            cursor = await self._db.execute(
                "DELETE FROM index_files WHERE expires_at < ?", (cutoff,)
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", index_files_deleted=deleted)
            return deleted
        except (aiosqlite.Error, OSError):
            log.warning("cache_cleanup_error", exc_info=True)
            return 0
