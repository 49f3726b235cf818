from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class IndexState(StrEnum):
    EMPTY = "empty"
    PREPARING = "preparing"
    READY = "ready"
    FAILED = "failed"


class PrepareOutcome(StrEnum):
    PREPARED = "prepared"
    ALREADY_READY = "already_ready"
    # A newer prepare() or clear() won the race; this run's result was discarded.
    SUPERSEDED = "superseded"


class IndexStatus(BaseModel):
    """Read-only diagnostics snapshot of the index manager."""

    state: IndexState
    identity: str | None
    index_size: int
    last_error: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.state is IndexState.READY
