from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class IndexFileEntry(BaseModel):
    """Metadata for one downloaded creators.txt file."""

    identity: str  # Normalised base URL (primary key)
    index_url: str
    path: str  # Absolute path of the cached text file
    size_bytes: int
    fetched_at: datetime
    expires_at: datetime
    stale: bool = False
