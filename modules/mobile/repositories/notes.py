"""
Notes Repository.

Data access layer for notes. Every query is partitioned by owner and
ordered newest first.
"""

from modules.mobile.core.logging import get_logger
from modules.mobile.core.streams import LiveStream
from modules.mobile.core.utils import format_timestamp, utc_now
from modules.mobile.models.note import Note
from modules.mobile.repositories.base import BaseRepository
from modules.mobile.store.base import Query

logger = get_logger(__name__)


class NotesRepository(BaseRepository[Note]):
    """
    Repository for Note documents.

    Inherits the store-backed operations from BaseRepository and exposes
    the five calls the notes provider relies on.
    """

    model = Note
    collection = "notes"

    def _owner_query(self, owner_id: str) -> Query:
        return Query(
            self.collection,
            where=(("ownerId", owner_id),),
            order_by="createdAt",
            descending=True,
        )

    def stream_notes(self, owner_id: str) -> LiveStream[list[Note]]:
        """
        Live list of an owner's notes, newest first.

        Args:
            owner_id: Owner whose notes are streamed

        Returns:
            Stream delivering the full list after every change
        """
        logger.debug("Opening notes stream", extra={"owner_id": owner_id})
        return self.watch(self._owner_query(owner_id))

    async def fetch_notes(self, owner_id: str) -> list[Note]:
        """One-shot fetch of an owner's notes, newest first."""
        return await self.find(self._owner_query(owner_id))

    async def add_note(self, text: str, owner_id: str) -> str:
        """
        Create a note.

        Returns:
            Identifier assigned by the store
        """
        note_id = await self.create(Note.new(text, owner_id).to_document())
        logger.debug("Note stored", extra={"note_id": note_id, "owner_id": owner_id})
        return note_id

    async def update_note(self, note_id: str, text: str) -> None:
        """
        Replace a note's text and bump its update time.

        Raises:
            NotFoundError: If the note does not exist
        """
        await self.update(note_id, {"text": text, "updatedAt": format_timestamp(utc_now())})

    async def delete_note(self, note_id: str) -> None:
        """Delete a note. Deleting a missing note is a no-op."""
        await self.delete(note_id)
