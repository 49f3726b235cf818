"""Shared fixtures: sample index content and isolated settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from creatorindex.config import Settings

if TYPE_CHECKING:
    from pathlib import Path

KEMONO = "https://kemono.test"
COOMER = "https://coomer.test"

SAMPLE_INDEX = "\n".join(
    [
        "a,1,Alpha",
        "b,2,Beta",
        "onlyincomplete",
        "c,3,Alphabet",
        "patreon, 12345 , Jane, Doe",
        "",
        "fanbox,77",
    ]
)


@pytest.fixture()
def sample_index() -> str:
    return SAMPLE_INDEX


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings with every path under tmp_path and test backends."""
    return Settings(data_dir=str(tmp_path), sources={"kemono": KEMONO, "coomer": COOMER})
