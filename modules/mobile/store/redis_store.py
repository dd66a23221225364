"""
Redis Document Store.

DocumentStore backed by Redis through redis.asyncio. Key layout per
collection:

    {prefix}:{collection}:doc:{id}   JSON document body (STRING)
    {prefix}:{collection}:ids        identifiers of all documents (SET)
    {prefix}:{collection}:changes    pub/sub channel carrying change events

Every write publishes a DocumentAdded/DocumentUpdated/DocumentDeleted
envelope on the change channel. A watch subscribes to that channel first,
then delivers the initial result set, then re-runs the query whenever a
change touches a document its filter matches.

The client must be created with decode_responses=True.

Usage:
    from modules.mobile.store.redis_store import RedisDocumentStore

    store = RedisDocumentStore.from_url("redis://localhost:6379/0", key_prefix="notekeeper")
    note_id = await store.add_document("notes", {"text": "hi", "ownerId": "u1"})
"""

import asyncio
import json
from collections.abc import Awaitable
from typing import Any, TypeVar

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from modules.mobile.core.exceptions import (
    ApplicationError,
    NotFoundError,
    StoreError,
    SubscriptionError,
)
from modules.mobile.core.logging import get_logger, log_with_source
from modules.mobile.core.streams import Subscription
from modules.mobile.core.utils import new_document_id
from modules.mobile.events.schemas import (
    CHANGE_EVENT_TYPES,
    DocumentAdded,
    DocumentDeleted,
    DocumentUpdated,
    EventEnvelope,
)
from modules.mobile.store.base import (
    DocumentSnapshot,
    ErrorHandler,
    Query,
    SnapshotHandler,
)

logger = get_logger(__name__)

T = TypeVar("T")

EVENT_SOURCE = "redis-store"


class RedisDocumentStore:
    """DocumentStore keeping JSON documents in Redis with a pub/sub change feed."""

    def __init__(self, client: redis.Redis, key_prefix: str = "notekeeper") -> None:
        self._client = client
        self._prefix = key_prefix
        self._watch_tasks: set[asyncio.Task] = set()

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "notekeeper") -> "RedisDocumentStore":
        """Create a store with its own connection pool."""
        return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    @property
    def watch_count(self) -> int:
        """Number of watch tasks still running."""
        return len(self._watch_tasks)

    def _doc_key(self, collection: str, document_id: str) -> str:
        return f"{self._prefix}:{collection}:doc:{document_id}"

    def _ids_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}:ids"

    def _channel(self, collection: str) -> str:
        return f"{self._prefix}:{collection}:changes"

    async def _execute(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Run a Redis operation, converting client errors to StoreError.

        Raises:
            StoreError: For any Redis failure
        """
        try:
            return await coro
        except RedisError as e:
            logger.error(
                "Redis operation failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise StoreError(f"Document store operation failed: {operation}") from e

    # ------------------------------------------------------------------ reads

    async def _load(self, query: Query) -> list[DocumentSnapshot]:
        ids = sorted(await self._client.smembers(self._ids_key(query.collection)))
        if not ids:
            return []
        bodies = await self._client.mget([self._doc_key(query.collection, i) for i in ids])

        snapshots = []
        for document_id, body in zip(ids, bodies):
            # Id listed but body already removed by a concurrent delete
            if body is None:
                continue
            try:
                data = json.loads(body)
            except ValueError as e:
                raise StoreError(
                    f"Corrupted document {query.collection}/{document_id}"
                ) from e
            snapshots.append(DocumentSnapshot(id=document_id, data=data))
        return query.apply(snapshots)

    async def get_documents(self, query: Query) -> list[DocumentSnapshot]:
        return await self._execute("get_documents", self._load(query))

    # ----------------------------------------------------------------- writes

    async def _publish(self, collection: str, event: EventEnvelope) -> None:
        await self._execute(
            "publish_change",
            self._client.publish(self._channel(collection), event.model_dump_json()),
        )
        logger.debug(
            "Change published",
            extra={"collection": collection, "event_type": event.event_type},
        )

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        document_id = new_document_id()

        async def write() -> None:
            await self._client.set(self._doc_key(collection, document_id), json.dumps(data))
            await self._client.sadd(self._ids_key(collection), document_id)

        await self._execute("add_document", write())
        await self._publish(
            collection,
            DocumentAdded(
                source=EVENT_SOURCE,
                correlation_id=document_id,
                payload={"collection": collection, "document_id": document_id, "data": data},
            ),
        )
        return document_id

    async def update_document(
        self, collection: str, document_id: str, data: dict[str, Any],
    ) -> None:
        key = self._doc_key(collection, document_id)

        async def write() -> tuple[dict[str, Any], dict[str, Any]]:
            raw = await self._client.get(key)
            if raw is None:
                raise NotFoundError(f"Document {collection}/{document_id} not found")
            before = json.loads(raw)
            after = {**before, **data}
            await self._client.set(key, json.dumps(after))
            return before, after

        before, after = await self._execute("update_document", write())
        await self._publish(
            collection,
            DocumentUpdated(
                source=EVENT_SOURCE,
                correlation_id=document_id,
                payload={
                    "collection": collection,
                    "document_id": document_id,
                    "data": after,
                    "previous": before,
                },
            ),
        )

    async def delete_document(self, collection: str, document_id: str) -> None:
        key = self._doc_key(collection, document_id)

        async def remove() -> dict[str, Any] | None:
            raw = await self._client.get(key)
            if raw is None:
                return None
            await self._client.srem(self._ids_key(collection), document_id)
            await self._client.delete(key)
            return json.loads(raw)

        removed = await self._execute("delete_document", remove())
        if removed is None:
            return
        await self._publish(
            collection,
            DocumentDeleted(
                source=EVENT_SOURCE,
                correlation_id=document_id,
                payload={"collection": collection, "document_id": document_id, "data": removed},
            ),
        )

    # ---------------------------------------------------------------- watches

    def watch(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Subscription:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise StoreError("Watching a query requires a running event loop") from e

        task = loop.create_task(self._run_watch(query, on_snapshot, on_error))
        self._watch_tasks.add(task)
        task.add_done_callback(self._watch_tasks.discard)
        subscription = Subscription(on_cancel=task.cancel)
        # A watch that ends on its own (subscribe failure, lost feed) is no longer live
        task.add_done_callback(lambda _: subscription.mark_done())
        return subscription

    def _affects(self, query: Query, raw: Any) -> bool:
        try:
            event = EventEnvelope.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Ignoring malformed change event", extra={"collection": query.collection})
            return False
        if event.event_type not in CHANGE_EVENT_TYPES:
            return False
        if event.payload.get("collection") != query.collection:
            return False
        bodies = [event.payload.get("data"), event.payload.get("previous")]
        return any(query.matches(body) for body in bodies if isinstance(body, dict) and body)

    async def _refresh(
        self, query: Query, on_snapshot: SnapshotHandler, on_error: ErrorHandler,
    ) -> None:
        try:
            snapshot = await self._load(query)
        except Exception as e:
            logger.warning(
                "Watch query failed",
                extra={"collection": query.collection, "error": str(e)},
            )
            on_error(e if isinstance(e, ApplicationError) else StoreError(f"Query failed: {e}"))
            return
        try:
            on_snapshot(snapshot)
        except Exception:
            logger.exception("Snapshot handler raised", extra={"collection": query.collection})

    async def _run_watch(
        self, query: Query, on_snapshot: SnapshotHandler, on_error: ErrorHandler,
    ) -> None:
        channel = self._channel(query.collection)
        pubsub = self._client.pubsub()
        try:
            try:
                await pubsub.subscribe(channel)
            except RedisError as e:
                on_error(SubscriptionError(f"Could not subscribe to {channel}: {e}"))
                return

            log_with_source(logger, "store", "debug", "Watch opened", channel=channel)
            await self._refresh(query, on_snapshot, on_error)

            try:
                async for message in pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    if self._affects(query, message.get("data")):
                        await self._refresh(query, on_snapshot, on_error)
            except RedisError as e:
                logger.error("Change feed lost", extra={"channel": channel, "error": str(e)})
                on_error(SubscriptionError(f"Lost change feed for {query.collection}: {e}"))
        finally:
            await self._close_pubsub(pubsub, channel)

    async def _close_pubsub(self, pubsub: Any, channel: str) -> None:
        try:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
        except RedisError as e:
            logger.warning("Failed to close pub/sub", extra={"channel": channel, "error": str(e)})
        log_with_source(logger, "store", "debug", "Watch closed", channel=channel)

    async def close(self) -> None:
        tasks = list(self._watch_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()
