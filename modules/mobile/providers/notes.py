"""
Notes Provider.

Keeps one live view of one owner's notes and exposes it as observable
state for the UI. The live subscription is the single source of truth:
write methods only report whether the store accepted the write, and the
changed list arrives later through the stream.

Consequences callers must know about:
    - Writes made while no subscription is active are not reflected in
      `notes` until start_listening_to_notes() (or fetch_notes()) runs.
    - Errors are sticky. A later successful snapshot does not clear
      `error_message`; call clear_error() once the UI has shown it.
    - There are no timeouts. A silent stream leaves `is_loading` set.
    - fetch_notes() never touches the subscription. Fetching another
      owner while listening replaces `notes` with that owner's list, but
      `owner_id` still names the listened owner and the next snapshot from
      the stream replaces the fetched list again.

Usage:
    from modules.mobile.core.dependencies import create_notes_provider

    provider = create_notes_provider()
    provider.add_listener(lambda: render(provider.state))
    provider.start_listening_to_notes(user_id)

    if not await provider.add_note("Buy milk", user_id):
        show_snackbar(provider.error_message)

    provider.clear_notes()   # on logout
    provider.dispose()
"""

from dataclasses import dataclass

from modules.mobile.core.exceptions import ValidationError
from modules.mobile.core.streams import Subscription
from modules.mobile.models.note import Note
from modules.mobile.providers.base import BaseProvider
from modules.mobile.repositories.notes import NotesRepository


@dataclass(frozen=True)
class NotesState:
    """Read-only snapshot of a NotesProvider's observable fields."""

    notes: tuple[Note, ...] = ()
    is_loading: bool = False
    error_message: str = ""

    @property
    def has_notes(self) -> bool:
        return bool(self.notes)


class NotesProvider(BaseProvider):
    """
    State holder bridging the notes stream to the UI.

    Holds at most one stream subscription at a time. Every change to
    `notes`, `is_loading` or `error_message` notifies listeners
    synchronously. Not thread-safe; use from a single event loop.
    """

    def __init__(self, repository: NotesRepository) -> None:
        super().__init__()
        self.repository = repository
        self._notes: list[Note] = []
        self._is_loading = False
        self._error_message = ""
        self._owner_id: str | None = None
        self._subscription: Subscription | None = None
        # Bumped on every cancel; callbacks from older subscriptions are dropped
        self._generation = 0

    @property
    def notes(self) -> list[Note]:
        return list(self._notes)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error_message(self) -> str:
        return self._error_message

    @property
    def has_notes(self) -> bool:
        return bool(self._notes)

    @property
    def owner_id(self) -> str | None:
        """Owner currently listened to, None before listening and after clear_notes()."""
        return self._owner_id

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None and self._subscription.is_active

    @property
    def state(self) -> NotesState:
        return NotesState(
            notes=tuple(self._notes),
            is_loading=self._is_loading,
            error_message=self._error_message,
        )

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _require_owner(owner_id: str) -> None:
        if not owner_id:
            raise ValidationError("Owner id must not be empty")

    def _cancel_subscription(self) -> None:
        self._generation += 1
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def _switch_owner(self, owner_id: str) -> None:
        # Never show one owner's notes while loading another's
        if owner_id != self._owner_id:
            self._notes = []
        self._owner_id = owner_id

    def _reset_error(self) -> None:
        if self._error_message:
            self._error_message = ""
            self.notify_listeners()

    def _record_error(self, error: Exception, *, stop_loading: bool) -> None:
        self._error_message = self._describe(error)
        if stop_loading:
            self._is_loading = False
        self.notify_listeners()

    # ------------------------------------------------------------ live stream

    def start_listening_to_notes(self, owner_id: str) -> None:
        """
        Replace any active subscription with one for owner_id's notes.

        Failures while subscribing, and errors delivered later by the
        stream, are recorded in `error_message`. Stream errors do not end
        the subscription.
        """
        self._cancel_subscription()
        self._switch_owner(owner_id)
        self._is_loading = True
        self._error_message = ""
        self.notify_listeners()

        generation = self._generation
        self._log_operation("Starting to listen to notes", owner_id=owner_id)

        try:
            self._require_owner(owner_id)
            self._subscription = self.repository.stream_notes(owner_id).listen(
                on_data=lambda notes: self._on_notes(generation, notes),
                on_error=lambda error: self._on_stream_error(generation, error),
            )
        except Exception as e:
            self._log_failure("Error starting notes stream", e, owner_id=owner_id)
            self._record_error(e, stop_loading=True)

    def _on_notes(self, generation: int, notes: list[Note]) -> None:
        if generation != self._generation:
            return
        self._log_debug("Received notes from stream", count=len(notes))
        self._notes = list(notes)
        self._is_loading = False
        self.notify_listeners()

    def _on_stream_error(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            return
        self._log_failure("Notes stream error", error, owner_id=self._owner_id)
        self._record_error(error, stop_loading=True)

    # ---------------------------------------------------------------- one-shot

    async def fetch_notes(self, owner_id: str) -> None:
        """
        Fetch owner_id's notes once, without touching the live subscription.

        `owner_id` (the listened owner) is left as it is, even when the
        fetched owner differs.
        """
        self._is_loading = True
        self._error_message = ""
        self.notify_listeners()

        try:
            self._require_owner(owner_id)
            notes = await self.repository.fetch_notes(owner_id)
        except Exception as e:
            self._log_failure("Error fetching notes", e, owner_id=owner_id)
            self._record_error(e, stop_loading=True)
            return

        self._log_debug("Fetched notes", owner_id=owner_id, count=len(notes))
        self._notes = list(notes)
        self._is_loading = False
        self.notify_listeners()

    # ------------------------------------------------------------------ writes

    async def add_note(self, text: str, owner_id: str) -> bool:
        """
        Create a note for owner_id.

        Returns:
            True if the store accepted the note, False if it failed
        """
        self._reset_error()
        self._log_operation("Adding note", owner_id=owner_id)
        try:
            self._require_owner(owner_id)
            note_id = await self.repository.add_note(text, owner_id)
        except Exception as e:
            self._log_failure("Error adding note", e, owner_id=owner_id)
            self._record_error(e, stop_loading=False)
            return False
        self._log_operation("Note added", note_id=note_id)
        return True

    async def update_note(self, note_id: str, text: str, owner_id: str) -> bool:
        """
        Replace the text of note_id.

        Returns:
            True if the store accepted the change, False if it failed
        """
        self._reset_error()
        self._log_operation("Updating note", note_id=note_id, owner_id=owner_id)
        try:
            await self.repository.update_note(note_id, text)
        except Exception as e:
            self._log_failure("Error updating note", e, note_id=note_id)
            self._record_error(e, stop_loading=False)
            return False
        self._log_operation("Note updated", note_id=note_id)
        return True

    async def delete_note(self, note_id: str, owner_id: str) -> bool:
        """
        Delete note_id.

        Returns:
            True if the store accepted the deletion, False if it failed
        """
        self._reset_error()
        self._log_operation("Deleting note", note_id=note_id, owner_id=owner_id)
        try:
            await self.repository.delete_note(note_id)
        except Exception as e:
            self._log_failure("Error deleting note", e, note_id=note_id)
            self._record_error(e, stop_loading=False)
            return False
        self._log_operation("Note deleted", note_id=note_id)
        return True

    # --------------------------------------------------------------- lifecycle

    def clear_notes(self) -> None:
        """Cancel the subscription and reset all state. Call on logout."""
        self._cancel_subscription()
        self._notes = []
        self._is_loading = False
        self._error_message = ""
        self._owner_id = None
        self._log_operation("Notes cleared")
        self.notify_listeners()

    def clear_error(self) -> None:
        """Dismiss the current error message."""
        self._error_message = ""
        self.notify_listeners()

    def dispose(self) -> None:
        """Cancel the subscription and stop notifying listeners for good."""
        self._cancel_subscription()
        super().dispose()
