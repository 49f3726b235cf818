"""Index source fetcher: cache-or-download of creators.txt per backend.

The remote file is streamed to ``<key>.txt.part`` and renamed over
``<key>.txt`` only after the whole body arrived, so a reader never sees a
half-written index. No retries happen here; a failed download surfaces as
``FetchError`` and the caller decides whether to try again.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import structlog

from creatorindex.config import CacheSettings, FetcherSettings
from creatorindex.errors import ErrorCode, FetchError
from creatorindex.sources import cache_key, index_url

if TYPE_CHECKING:
    from creatorindex.cache import Cache

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client used for index downloads."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds, connect=settings.connect_timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/plain, */*",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache",
        },
    )


def _status_error(url: str, status: int) -> FetchError:
    if status == 404:
        return FetchError(
            ErrorCode.INDEX_NOT_FOUND, f"Creator index not found (HTTP 404): {url}", False
        )
    recoverable = status >= 500 or status == 429
    return FetchError(
        ErrorCode.INDEX_DOWNLOAD_FAILED,
        f"Failed to download creator index (HTTP {status}): {url}",
        recoverable,
    )


class Fetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: Cache,
        cache_settings: CacheSettings | None = None,
        fetcher_settings: FetcherSettings | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._cache_settings = cache_settings or CacheSettings()
        self._settings = fetcher_settings or FetcherSettings()
        self._index_dir = Path(self._cache_settings.index_dir).expanduser()

    def path_for(self, identity: str) -> Path:
        return self._index_dir / f"{cache_key(identity)}.txt"

    async def _fresh_path(self, identity: str) -> Path | None:
        entry = await self._cache.get_index(identity)
        if entry is None or entry.stale:
            return None
        path = Path(entry.path)
        return path if path.is_file() else None

    async def has_valid_cache(self, identity: str) -> bool:
        """True when a fresh record exists and its file is still on disk."""
        return await self._fresh_path(identity) is not None

    async def obtain(self, identity: str) -> Path:
        """Return the local index file for ``identity``, downloading only if needed."""
        path = await self._fresh_path(identity)
        if path is not None:
            log.info("creator_index_cache_hit", identity=identity, path=str(path))
            return path
        return await self.download_index(identity)

    async def download_index(self, identity: str) -> Path:
        """Download the index for ``identity`` and replace any cached copy.

        Raises ``FetchError`` on timeout, transport failure, non-200 status,
        empty body or a local write failure.
        """
        url = index_url(identity)
        target = self.path_for(identity)
        partial = target.with_name(target.name + ".part")
        log.info("creator_index_download_start", identity=identity, url=url)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            size = 0
            async with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise _status_error(url, response.status_code)
                with partial.open("wb") as fh:
                    async for chunk in response.aiter_bytes(self._settings.chunk_size):
                        await asyncio.to_thread(fh.write, chunk)
                        size += len(chunk)
            if size == 0:
                raise FetchError(ErrorCode.INDEX_EMPTY, f"Creator index is empty: {url}", True)
            os.replace(partial, target)
        except FetchError:
            partial.unlink(missing_ok=True)
            raise
        except httpx.TimeoutException as exc:
            partial.unlink(missing_ok=True)
            raise FetchError(
                ErrorCode.INDEX_DOWNLOAD_FAILED, f"Timed out downloading {url}", True
            ) from exc
        except httpx.HTTPError as exc:
            partial.unlink(missing_ok=True)
            raise FetchError(
                ErrorCode.INDEX_DOWNLOAD_FAILED, f"Network error downloading {url}: {exc}", True
            ) from exc
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise FetchError(
                ErrorCode.INDEX_STORAGE_FAILED, f"Could not write index to {target}: {exc}", False
            ) from exc

        await self._cache.set_index(
            identity=identity,
            index_url=url,
            path=str(target),
            size_bytes=size,
            ttl_hours=self._cache_settings.ttl_hours,
        )
        log.info("creator_index_download_complete", identity=identity, size_bytes=size)
        return target

    async def invalidate(self, identity: str) -> None:
        """Drop the cached file and its record so the next ``obtain`` downloads."""
        await self._cache.delete_index(identity)
        self.path_for(identity).unlink(missing_ok=True)
        log.info("creator_index_cache_invalidated", identity=identity)
