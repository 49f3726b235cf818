"""creators.txt line parser.

Each line is ``service,user_id,name``; the name may itself contain commas,
so everything after the second comma is the name. Lines with fewer than
three comma-separated tokens are skipped without error, which tolerates
truncated downloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from creatorindex.models.creator import CreatorIndexEntry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

log = structlog.get_logger()


@dataclass
class ParseResult:
    entries: list[CreatorIndexEntry] = field(default_factory=list)
    lines_read: int = 0
    skipped: int = 0  # malformed lines; diagnostic only


def parse_line(raw: str) -> CreatorIndexEntry | None:
    """Parse one index line. Returns ``None`` when the line should be skipped."""
    parts = raw.split(",")
    if len(parts) < 3:
        return None
    return CreatorIndexEntry(
        service=parts[0].strip(),
        user_id=parts[1].strip(),
        name=",".join(parts[2:]).strip(),
    )


def read_lines(path: Path) -> Iterator[str]:
    """Yield the meaningful lines of a cached index file.

    Blank lines and ``#`` comment lines are dropped here, before parsing.
    """
    with path.open(encoding="utf-8", errors="replace", newline=None) as fh:
        for line in fh:
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            yield line


def parse_lines(lines: Iterable[str], *, progress_every: int = 10_000) -> ParseResult:
    result = ParseResult()
    for raw in lines:
        result.lines_read += 1
        entry = parse_line(raw)
        if entry is None:
            result.skipped += 1
            continue
        result.entries.append(entry)
        if len(result.entries) % progress_every == 0:
            log.info("creator_index_parse_progress", parsed=len(result.entries))
    return result


def parse_file(path: Path, *, progress_every: int = 10_000) -> ParseResult:
    """Parse a whole index file. Blocking; run it off the event loop."""
    result = parse_lines(read_lines(path), progress_every=progress_every)
    log.info(
        "creator_index_parsed",
        path=str(path),
        entries=len(result.entries),
        skipped=result.skipped,
    )
    return result
