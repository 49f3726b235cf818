"""Backend identity: which remote creator directory is active.

The identity is the normalised base URL of the backend. It doubles as the
on-disk cache key (hashed) and as the readiness guard in the manager.
"""

from __future__ import annotations

import hashlib
import re
from enum import StrEnum
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

from creatorindex.errors import CreatorIndexError, ErrorCode

if TYPE_CHECKING:
    from creatorindex.config import SourcesSettings

INDEX_PATH = "/api/v1/creators.txt"

_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class ApiSource(StrEnum):
    KEMONO = "kemono"
    COOMER = "coomer"


def is_valid_domain(domain: str) -> bool:
    if not domain:
        return False
    return bool(_DOMAIN_RE.match(domain))


def normalize_base_url(value: str | ApiSource, sources: SourcesSettings | None = None) -> str:
    """Return the canonical base URL for an ``ApiSource``, bare domain or URL.

    Raises ``CreatorIndexError`` (INVALID_IDENTITY) when no host can be found.
    """
    if isinstance(value, ApiSource):
        if sources is None:
            from creatorindex.config import SourcesSettings

            sources = SourcesSettings()
        value = sources.base_url_for(value)

    raw = value.strip()
    if not raw:
        raise CreatorIndexError(ErrorCode.INVALID_IDENTITY, "backend identity must not be empty")
    if "://" not in raw:
        raw = f"https://{raw}"

    parts = urlsplit(raw)
    if parts.scheme not in ("http", "https") or not is_valid_domain(parts.hostname or ""):
        raise CreatorIndexError(ErrorCode.INVALID_IDENTITY, f"Invalid backend identity: {value!r}")

    try:
        port = parts.port
    except ValueError as exc:
        raise CreatorIndexError(
            ErrorCode.INVALID_IDENTITY, f"Invalid backend identity: {value!r}"
        ) from exc

    netloc = parts.hostname.lower()
    if port is not None:
        netloc = f"{netloc}:{port}"
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme, netloc, path, "", ""))


def index_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{INDEX_PATH}"


def cache_key(base_url: str) -> str:
    """SHA-256 of the normalised base URL, used as the cached file name."""
    return hashlib.sha256(base_url.encode()).hexdigest()
