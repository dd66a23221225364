"""
Note Model.

Immutable value record for a single user note, with conversion to and from
the key-value document stored in the backing document store.

Stored document layout (the identifier lives outside the body):

    {
        "text": "Buy milk",
        "ownerId": "user-123",
        "createdAt": "2026-01-01T10:00:00.000000",
        "updatedAt": "2026-01-01T10:00:00.000000"
    }
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from modules.mobile.core.exceptions import ValidationError
from modules.mobile.core.utils import format_timestamp, utc_now


class Note(BaseModel):
    """
    A personal text note.

    Notes are partitioned by owner_id. A note that has not been written to
    the store yet has an empty id.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    text: str
    owner_id: str = Field(alias="ownerId")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def check_timestamp_type(cls, value: Any) -> Any:
        # Stored timestamps are ISO strings; numbers are not epoch seconds here
        if not isinstance(value, (str, datetime)):
            raise ValueError(f"timestamp must be an ISO string, got {type(value).__name__}")
        return value

    @field_serializer("created_at", "updated_at", when_used="json")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    @property
    def is_persisted(self) -> bool:
        """Whether the store has assigned an identifier."""
        return bool(self.id)

    @classmethod
    def new(cls, text: str, owner_id: str) -> "Note":
        """Build an unsaved note stamped with the current time."""
        now = utc_now()
        return cls(text=text, owner_id=owner_id, created_at=now, updated_at=now)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document body (JSON-safe values)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Note":
        """
        Build a Note from a stored document.

        Args:
            document_id: Identifier assigned by the store
            data: Document body

        Returns:
            Parsed note

        Raises:
            ValidationError: If the document is missing fields or has bad values
        """
        try:
            return cls.model_validate({**data, "id": document_id})
        except PydanticValidationError as e:
            raise ValidationError(
                f"Malformed note document {document_id}",
                details={"document_id": document_id, "error_count": e.error_count()},
            ) from e

    def __repr__(self) -> str:
        return f"<Note(id={self.id!r}, owner_id={self.owner_id!r})>"
