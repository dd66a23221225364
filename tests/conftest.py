"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Tests run against the in-memory document store by default, so no Redis
server is needed. Store-level Redis tests use a mocked client.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta
from typing import Any

import pytest

from modules.mobile.models.note import Note
from modules.mobile.store.memory import MemoryDocumentStore


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
async def memory_store() -> AsyncGenerator[MemoryDocumentStore, None]:
    """
    Provide a fresh in-memory document store, closed after the test.

    Usage:
        @pytest.mark.asyncio
        async def test_something(memory_store):
            note_id = await memory_store.add_document("notes", {...})
    """
    store = MemoryDocumentStore()
    yield store
    await store.close()


async def drain_loop(rounds: int = 5) -> None:
    """Let callbacks scheduled with call_soon run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def drain() -> Callable[..., Any]:
    """Provide drain_loop() to tests that need pending snapshots delivered."""
    return drain_loop


# =============================================================================
# Model Factories
# =============================================================================


BASE_TIME = datetime(2026, 1, 1, 10, 0, 0)


@pytest.fixture
def make_note() -> Callable[..., Note]:
    """
    Factory for Note instances with deterministic timestamps.

    Usage:
        def test_something(make_note):
            note = make_note("n1", "Buy milk", minutes=5)
    """

    def factory(
        note_id: str = "n1",
        text: str = "Buy milk",
        owner_id: str = "user-1",
        minutes: int = 0,
    ) -> Note:
        stamp = BASE_TIME + timedelta(minutes=minutes)
        return Note(
            id=note_id,
            text=text,
            owner_id=owner_id,
            created_at=stamp,
            updated_at=stamp,
        )

    return factory


@pytest.fixture
def note_document() -> Callable[..., dict[str, Any]]:
    """Factory for stored note document bodies."""

    def factory(
        text: str = "Buy milk",
        owner_id: str = "user-1",
        minutes: int = 0,
    ) -> dict[str, Any]:
        stamp = (BASE_TIME + timedelta(minutes=minutes)).isoformat(timespec="microseconds")
        return {"text": text, "ownerId": owner_id, "createdAt": stamp, "updatedAt": stamp}

    return factory


# =============================================================================
# Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove handlers installed by setup_logging() during a test."""
    root_logger = logging.getLogger()
    before = set(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in before:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
