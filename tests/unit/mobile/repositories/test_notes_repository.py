"""
Unit Tests for NotesRepository.

Runs against MemoryDocumentStore; a mocked store is used where only the
forwarded call matters.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from modules.mobile.core.exceptions import NotFoundError, ValidationError
from modules.mobile.models.note import Note
from modules.mobile.repositories.notes import NotesRepository
from modules.mobile.store.base import Query


@pytest.fixture
def repository(memory_store) -> NotesRepository:
    return NotesRepository(memory_store)


class TestWrites:
    """Tests for add, update and delete."""

    @pytest.mark.asyncio
    async def test_add_note_stores_document(self, repository, memory_store):
        note_id = await repository.add_note("Buy milk", "user-1")

        [snapshot] = await memory_store.get_documents(Query("notes"))
        assert snapshot.id == note_id
        assert snapshot.data["text"] == "Buy milk"
        assert snapshot.data["ownerId"] == "user-1"
        assert snapshot.data["createdAt"] == snapshot.data["updatedAt"]

    @pytest.mark.asyncio
    async def test_update_note_changes_text_and_update_time(self, repository, memory_store, note_document):
        note_id = await memory_store.add_document("notes", note_document())

        await repository.update_note(note_id, "Buy oat milk")

        [snapshot] = await memory_store.get_documents(Query("notes"))
        assert snapshot.data["text"] == "Buy oat milk"
        assert snapshot.data["updatedAt"] > snapshot.data["createdAt"]

    @pytest.mark.asyncio
    async def test_update_missing_note_raises(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update_note("missing", "text")

    @pytest.mark.asyncio
    async def test_delete_note(self, repository, memory_store):
        note_id = await repository.add_note("Buy milk", "user-1")

        await repository.delete_note(note_id)

        assert await memory_store.get_documents(Query("notes")) == []

    @pytest.mark.asyncio
    async def test_custom_collection(self):
        store = MagicMock()
        store.add_document = AsyncMock(return_value="id-1")
        repository = NotesRepository(store, collection="archive")

        await repository.add_note("x", "user-1")

        assert store.add_document.call_args.args[0] == "archive"


class TestFetchNotes:
    """Tests for one-shot reads."""

    @pytest.mark.asyncio
    async def test_returns_owner_notes_newest_first(self, repository, memory_store, note_document):
        await memory_store.add_document("notes", note_document(text="old", minutes=0))
        await memory_store.add_document("notes", note_document(text="other", owner_id="user-2"))
        await memory_store.add_document("notes", note_document(text="new", minutes=5))

        notes = await repository.fetch_notes("user-1")

        assert [n.text for n in notes] == ["new", "old"]
        assert all(isinstance(n, Note) and n.is_persisted for n in notes)

    @pytest.mark.asyncio
    async def test_malformed_document_raises(self, repository, memory_store):
        await memory_store.add_document("notes", {"ownerId": "user-1", "createdAt": "x"})

        with pytest.raises(ValidationError):
            await repository.fetch_notes("user-1")


class TestStreamNotes:
    """Tests for the live notes stream."""

    @pytest.mark.asyncio
    async def test_stream_is_lazy(self, repository, memory_store):
        stream = repository.stream_notes("user-1")
        assert memory_store.watch_count == 0

        subscription = stream.listen(lambda _: None)
        assert memory_store.watch_count == 1

        subscription.cancel()
        assert memory_store.watch_count == 0

    @pytest.mark.asyncio
    async def test_stream_delivers_models(self, repository, drain):
        received = []
        repository.stream_notes("user-1").listen(received.append, pytest.fail)
        await drain()

        await repository.add_note("Buy milk", "user-1")
        await drain()

        assert received[0] == []
        assert [n.text for n in received[-1]] == ["Buy milk"]

    @pytest.mark.asyncio
    async def test_malformed_document_becomes_stream_error(self, repository, memory_store, drain, note_document):
        received, errors = [], []
        repository.stream_notes("user-1").listen(received.append, errors.append)
        await drain()

        await memory_store.add_document("notes", {"ownerId": "user-1", "createdAt": "x"})
        await drain()
        await memory_store.add_document("notes", note_document())
        await drain()

        assert received == [[]]
        assert len(errors) == 2
        assert all(isinstance(e, ValidationError) for e in errors)
