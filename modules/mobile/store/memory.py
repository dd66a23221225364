"""
In-Memory Document Store.

Process-local DocumentStore used for development, the CLI demo and tests.
Behaves like a hosted store from the caller's point of view: writes are
awaited, and live queries receive their snapshots later on the event loop
rather than inline with the write that caused them.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from typing import Any

from modules.mobile.core.exceptions import NotFoundError, StoreError
from modules.mobile.core.logging import get_logger
from modules.mobile.core.streams import Subscription
from modules.mobile.core.utils import new_document_id
from modules.mobile.store.base import (
    DocumentSnapshot,
    ErrorHandler,
    Query,
    SnapshotHandler,
)

logger = get_logger(__name__)


@dataclass(eq=False)
class _Watch:
    query: Query
    on_snapshot: SnapshotHandler
    on_error: ErrorHandler
    loop: asyncio.AbstractEventLoop
    active: bool = field(default=True)
    subscription: Subscription | None = None


class MemoryDocumentStore:
    """
    DocumentStore that keeps every collection in a dict.

    Document bodies are deep-copied on the way in and out, so callers can
    never mutate stored state through a returned snapshot.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._watches: list[_Watch] = []
        self._closed = False

    @property
    def watch_count(self) -> int:
        """Number of live queries currently open."""
        return len(self._watches)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreError("Document store is closed")

    def _snapshot(self, query: Query) -> list[DocumentSnapshot]:
        documents = self._collections.get(query.collection, {})
        return query.apply(
            DocumentSnapshot(id=document_id, data=copy.deepcopy(data))
            for document_id, data in documents.items()
        )

    async def get_documents(self, query: Query) -> list[DocumentSnapshot]:
        self._ensure_open()
        return self._snapshot(query)

    def watch(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Subscription:
        self._ensure_open()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise StoreError("Watching a query requires a running event loop") from e

        watch = _Watch(query=query, on_snapshot=on_snapshot, on_error=on_error, loop=loop)
        watch.subscription = Subscription(on_cancel=lambda: self._remove_watch(watch))
        self._watches.append(watch)
        self._schedule(watch)
        logger.debug(
            "Watch opened",
            extra={"collection": query.collection, "watches": len(self._watches)},
        )
        return watch.subscription

    def _remove_watch(self, watch: _Watch) -> None:
        watch.active = False
        if watch in self._watches:
            self._watches.remove(watch)
            logger.debug("Watch closed", extra={"collection": watch.query.collection})

    def _schedule(self, watch: _Watch) -> None:
        # The result set is captured at write time so deliveries stay in write order
        try:
            snapshot = self._snapshot(watch.query)
        except Exception as e:
            logger.warning(
                "Watch query failed",
                extra={"collection": watch.query.collection, "error": str(e)},
            )
            error = StoreError(f"Query failed: {e}")
            watch.loop.call_soon(self._deliver_error, watch, error)
            return
        watch.loop.call_soon(self._deliver, watch, snapshot)

    def _deliver(self, watch: _Watch, snapshot: list[DocumentSnapshot]) -> None:
        if not watch.active:
            return
        try:
            watch.on_snapshot(snapshot)
        except Exception:
            logger.exception(
                "Snapshot handler raised",
                extra={"collection": watch.query.collection},
            )

    def _deliver_error(self, watch: _Watch, error: Exception) -> None:
        if not watch.active:
            return
        try:
            watch.on_error(error)
        except Exception:
            logger.exception(
                "Error handler raised",
                extra={"collection": watch.query.collection},
            )

    def _broadcast(self, collection: str, *bodies: dict[str, Any]) -> None:
        for watch in list(self._watches):
            if watch.query.collection != collection:
                continue
            if any(watch.query.matches(body) for body in bodies):
                self._schedule(watch)

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        self._ensure_open()
        document_id = new_document_id()
        body = copy.deepcopy(data)
        self._collections.setdefault(collection, {})[document_id] = body
        logger.debug("Document added", extra={"collection": collection, "document_id": document_id})
        self._broadcast(collection, body)
        return document_id

    async def update_document(
        self, collection: str, document_id: str, data: dict[str, Any],
    ) -> None:
        self._ensure_open()
        documents = self._collections.get(collection, {})
        if document_id not in documents:
            raise NotFoundError(f"Document {collection}/{document_id} not found")
        before = documents[document_id]
        after = {**before, **copy.deepcopy(data)}
        documents[document_id] = after
        logger.debug("Document updated", extra={"collection": collection, "document_id": document_id})
        self._broadcast(collection, before, after)

    async def delete_document(self, collection: str, document_id: str) -> None:
        self._ensure_open()
        removed = self._collections.get(collection, {}).pop(document_id, None)
        if removed is None:
            return
        logger.debug("Document deleted", extra={"collection": collection, "document_id": document_id})
        self._broadcast(collection, removed)

    async def close(self) -> None:
        for watch in list(self._watches):
            self._remove_watch(watch)
            if watch.subscription is not None:
                watch.subscription.mark_done()
        self._closed = True
