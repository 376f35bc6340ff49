"""Shared pytest fixtures and configuration for the classifieds test suite.

This file is loaded automatically by pytest before any test module.
It provides project-wide fixtures used across unit and API tests.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from datetime import UTC, datetime

import pytest
from pydantic_settings import SettingsConfigDict

from classifieds.core import configure_logging
from classifieds.core.ids import MonotonicClock
from classifieds.core.settings import Settings
from classifieds.storage import MemoryStore

#: Every reading of the test clock starts here and is nudged forward by 1µs.
FROZEN_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test.

    ``force=True`` applies the configuration even when pytest's own
    ``log_cli`` handler is already present.
    """
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every env var :class:`Settings` reads for the duration of a test.

    Also disables pydantic-settings ``.env`` loading so a developer's local
    ``.env`` does not leak into Settings isolation tests.
    """
    prefixes = (
        "API_",
        "CORS_",
        "SEED_DATA",
        "DEMO_USER_ID",
        "LOG_LEVEL",
        "LOG_FORMAT",
    )
    for key in list(os.environ):
        if any(key.startswith(prefix) for prefix in prefixes):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(
            env_file=None,
            env_file_encoding="utf-8",
            extra="ignore",
        ),
    )


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> MonotonicClock:
    """A clock frozen at :data:`FROZEN_NOW`; readings still strictly increase."""
    return MonotonicClock(source=lambda: FROZEN_NOW)


@pytest.fixture()
async def store(clock: MonotonicClock) -> AsyncIterator[MemoryStore]:
    """An opened, empty :class:`MemoryStore`."""
    memory = MemoryStore(clock=clock)
    await memory.open(seed=False)
    yield memory
    await memory.close()


@pytest.fixture()
async def seeded_store(clock: MonotonicClock) -> AsyncIterator[MemoryStore]:
    """A :class:`MemoryStore` holding the demo user and the four demo listings."""
    memory = MemoryStore(clock=clock)
    await memory.open(seed=True)
    yield memory
    await memory.close()


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger() -> logging.Logger:
    """Return a ``logging.Logger`` scoped to test code."""
    return logging.getLogger("tests")
