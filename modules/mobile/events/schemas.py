"""
Event Schemas.

Standardized event envelope and store change events. The Redis document
store publishes one of these on the collection's change channel after
every write, and watches decode them to decide whether to re-query.

Naming convention for event_type: domain.entity.action (dot notation)
Channel naming convention: {prefix}:{collection}:changes

Usage:
    from modules.mobile.events.schemas import DocumentAdded

    event = DocumentAdded(
        source="redis-store",
        correlation_id=document_id,
        payload={"collection": "notes", "document_id": document_id, "data": data},
    )
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from modules.mobile.core.utils import utc_now


class EventEnvelope(BaseModel):
    """Base event envelope. All events inherit from this.

    Fields:
        event_id: Unique event identifier (auto-generated UUID)
        event_type: Domain event type in dot notation (e.g. store.document.added)
        event_version: Schema version for forward compatibility
        timestamp: ISO 8601 UTC timestamp
        source: Component that published the event
        correlation_id: Identifier tying related events together
        payload: Event-specific data
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_version: int = 1
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    source: str
    correlation_id: str
    payload: dict


class DocumentAdded(EventEnvelope):
    """Published when a document is created."""

    event_type: str = "store.document.added"


class DocumentUpdated(EventEnvelope):
    """Published when a document is modified."""

    event_type: str = "store.document.updated"


class DocumentDeleted(EventEnvelope):
    """Published when a document is removed. Payload data is the removed body."""

    event_type: str = "store.document.deleted"


CHANGE_EVENT_TYPES = frozenset({
    DocumentAdded.model_fields["event_type"].default,
    DocumentUpdated.model_fields["event_type"].default,
    DocumentDeleted.model_fields["event_type"].default,
})
