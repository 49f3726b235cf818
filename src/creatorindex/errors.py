"""Error types raised across the creator index boundary.

Every failure that a caller is expected to handle carries an ``ErrorCode``
and a ``recoverable`` flag so the UI layer can decide whether to offer a
retry without inspecting exception types.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INDEX_DOWNLOAD_FAILED = "INDEX_DOWNLOAD_FAILED"
    INDEX_NOT_FOUND = "INDEX_NOT_FOUND"
    INDEX_EMPTY = "INDEX_EMPTY"
    INDEX_STORAGE_FAILED = "INDEX_STORAGE_FAILED"
    INDEX_PARSE_FAILED = "INDEX_PARSE_FAILED"
    INVALID_IDENTITY = "INVALID_IDENTITY"


class CreatorIndexError(Exception):
    """Base error for the creator index."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code.value!r}, "
            f"message={self.message!r}, recoverable={self.recoverable})"
        )


class FetchError(CreatorIndexError):
    """Network or local storage failure while obtaining the index file."""
