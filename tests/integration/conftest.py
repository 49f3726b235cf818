"""Integration test fixtures.

Provides a fully wired AppState (real aiosqlite file, real index files under
tmp_path) with every HTTP request to the test backends served by respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx
import structlog

from creatorindex.state import app_lifespan

if TYPE_CHECKING:
    from creatorindex.config import Settings
    from creatorindex.state import AppState

KEMONO_URL = "https://kemono.test/api/v1/creators.txt"
COOMER_URL = "https://coomer.test/api/v1/creators.txt"
COOMER_INDEX = "onlyfans,alice,Alice\nfansly,bob,Bob Alpha\n"


@pytest.fixture(autouse=True)
def _reset_structlog():
    """app_lifespan configures structlog globally; undo it after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def backend(sample_index: str):
    """respx router serving one index per test backend."""
    with respx.mock(assert_all_called=False) as router:
        router.get(KEMONO_URL, name="kemono").mock(
            return_value=httpx.Response(200, text=sample_index)
        )
        router.get(COOMER_URL, name="coomer").mock(
            return_value=httpx.Response(200, text=COOMER_INDEX)
        )
        yield router


@pytest.fixture()
async def app_state(settings: Settings, backend: respx.MockRouter) -> AppState:
    async with app_lifespan(settings) as state:
        yield state
