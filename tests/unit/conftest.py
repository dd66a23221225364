"""
Unit Test Fixtures.

Fixtures for unit tests: mocked Redis, a controllable notes repository
and mocked configuration. No external services are used.
"""

import asyncio
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from modules.mobile.core.config_schema import (
    ApplicationSchema,
    LoggingSchema,
    StoreSchema,
)
from modules.mobile.core.streams import LiveStream, StreamController
from modules.mobile.models.note import Note
from modules.mobile.store.redis_store import RedisDocumentStore


# =============================================================================
# Redis Fixtures
# =============================================================================


class FakePubSub:
    """Pub/sub handle fed by FakeRedis.publish()."""

    def __init__(self, client: "FakeRedis") -> None:
        self._client = client
        self.channels: set[str] = set()
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def subscribe(self, *channels: str) -> None:
        self._client.check("subscribe")
        for channel in channels:
            self.channels.add(channel)
            self.queue.put_nowait({"type": "subscribe", "channel": channel, "data": 1})

    async def unsubscribe(self, *channels: str) -> None:
        self.channels.difference_update(channels)

    async def aclose(self) -> None:
        self.closed = True

    def fail(self, error: Exception) -> None:
        """Make the next listen() step raise error."""
        self.queue.put_nowait(error)

    async def listen(self):
        while True:
            message = await self.queue.get()
            if isinstance(message, Exception):
                raise message
            yield message


class FakeRedis:
    """
    Dict-backed stand-in for redis.asyncio.Redis (decode_responses=True).

    Add an operation name to `failing` to make that call raise a Redis
    connection error.
    """

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.pubsubs: list[FakePubSub] = []
        self.published: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self.closed = False

    def check(self, operation: str) -> None:
        if operation in self.failing:
            raise RedisConnectionError(f"{operation}: connection refused")

    async def get(self, key: str) -> str | None:
        self.check("get")
        return self.strings.get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        self.check("mget")
        return [self.strings.get(key) for key in keys]

    async def set(self, key: str, value: str) -> bool:
        self.check("set")
        self.strings[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        self.check("delete")
        return sum(1 for key in keys if self.strings.pop(key, None) is not None)

    async def sadd(self, key: str, *members: str) -> int:
        self.check("sadd")
        self.sets.setdefault(key, set()).update(members)
        return len(members)

    async def srem(self, key: str, *members: str) -> int:
        self.check("srem")
        self.sets.get(key, set()).difference_update(members)
        return len(members)

    async def smembers(self, key: str) -> "set[str]":  # the set() method shadows the builtin here
        self.check("smembers")
        return set(self.sets.get(key, set()))

    async def publish(self, channel: str, message: str) -> int:
        self.check("publish")
        self.published.append((channel, message))
        receivers = [p for p in self.pubsubs if channel in p.channels]
        for pubsub in receivers:
            pubsub.queue.put_nowait({"type": "message", "channel": channel, "data": message})
        return len(receivers)

    def pubsub(self) -> FakePubSub:
        pubsub = FakePubSub(self)
        self.pubsubs.append(pubsub)
        return pubsub

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide a fresh FakeRedis client."""
    return FakeRedis()


@pytest.fixture
async def redis_store(fake_redis: FakeRedis) -> AsyncGenerator[RedisDocumentStore, None]:
    """Provide a RedisDocumentStore over FakeRedis, closed after the test."""
    store = RedisDocumentStore(fake_redis, key_prefix="test")
    yield store
    await store.close()


# =============================================================================
# Repository Fixtures
# =============================================================================


class FakeNotesRepository:
    """
    Notes repository whose streams are driven by the test.

    Every stream_notes() call opens a new StreamController; push values
    through `latest` (or an older entry of `controllers`).
    """

    def __init__(self) -> None:
        self.controllers: list[StreamController[list[Note]]] = []
        self.stream_owners: list[str] = []
        self.stream_error: Exception | None = None
        self.fetch_notes = AsyncMock(return_value=[])
        self.add_note = AsyncMock(return_value="new-note-id")
        self.update_note = AsyncMock(return_value=None)
        self.delete_note = AsyncMock(return_value=None)

    def stream_notes(self, owner_id: str) -> LiveStream[list[Note]]:
        if self.stream_error is not None:
            raise self.stream_error
        self.stream_owners.append(owner_id)
        controller: StreamController[list[Note]] = StreamController()
        self.controllers.append(controller)
        return controller.stream

    @property
    def latest(self) -> StreamController[list[Note]]:
        return self.controllers[-1]


@pytest.fixture
def fake_repository() -> FakeNotesRepository:
    """Provide a FakeNotesRepository."""
    return FakeNotesRepository()


# =============================================================================
# Configuration Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_app_config() -> MagicMock:
    """
    Mock application configuration with validated sections.

    Usage:
        def test_config(mock_app_config):
            with patch("modules.mobile.core.config.get_app_config", return_value=mock_app_config):
                ...
    """
    config = MagicMock()
    config.application = ApplicationSchema(
        name="Test App",
        version="1.0.0",
        description="Test application",
        environment="test",
        debug=True,
    )
    config.logging = LoggingSchema(
        level="DEBUG",
        format="console",
        handlers={
            "console": {"enabled": True},
            "file": {
                "enabled": False,
                "path": "logs/system.jsonl",
                "max_bytes": 10485760,
                "backup_count": 5,
            },
        },
    )
    config.store = StoreSchema(
        backend="memory",
        notes_collection="test_notes",
        redis={"host": "localhost", "port": 6379, "db": 0, "key_prefix": "test"},
    )
    return config


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.logger", mock_logger):
                # Test code that logs
                mock_logger.warning.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger

