"""
Base Repository.

Base class for all repositories with common document store operations.
Repositories translate between stored documents and models; they add no
business rules and never swallow store errors.
"""

from typing import Any, Generic, TypeVar

from modules.mobile.core.logging import get_logger
from modules.mobile.core.streams import ErrorHandler, LiveStream, Subscription
from modules.mobile.store.base import DocumentSnapshot, DocumentStore, Query, SnapshotHandler

logger = get_logger(__name__)

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Base repository over one collection of a DocumentStore.

    Subclasses set the model class and default collection. The model must
    provide a from_document(document_id, data) classmethod:

        class NotesRepository(BaseRepository[Note]):
            model = Note
            collection = "notes"
    """

    model: type[ModelType]
    collection: str

    def __init__(self, store: DocumentStore, collection: str | None = None) -> None:
        self.store = store
        if collection is not None:
            self.collection = collection

    def _to_models(self, snapshots: list[DocumentSnapshot]) -> list[ModelType]:
        """
        Convert store snapshots to models, preserving order.

        Raises:
            ValidationError: If any document is malformed
        """
        return [self.model.from_document(s.id, s.data) for s in snapshots]

    def watch(self, query: Query) -> LiveStream[list[ModelType]]:
        """
        Live stream of query results as models.

        The store watch is only opened when the stream is listened to, and
        closed when that subscription is cancelled.
        """

        def subscribe(
            on_data: SnapshotHandler, on_error: ErrorHandler,
        ) -> Subscription:
            return self.store.watch(query, on_data, on_error)

        return LiveStream(subscribe).map(self._to_models)

    async def find(self, query: Query) -> list[ModelType]:
        """Run query once and return the results as models."""
        return self._to_models(await self.store.get_documents(query))

    async def create(self, data: dict[str, Any]) -> str:
        """Create a document and return its identifier."""
        return await self.store.add_document(self.collection, data)

    async def update(self, id: str, data: dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFoundError: If the document does not exist
        """
        await self.store.update_document(self.collection, id, data)

    async def delete(self, id: str) -> None:
        """Delete a document. Missing documents are ignored."""
        await self.store.delete_document(self.collection, id)
