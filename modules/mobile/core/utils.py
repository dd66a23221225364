"""
Core Utilities.

Shared utility functions used across the mobile core.
All modules should import utilities from this module.
"""

from datetime import datetime, timezone
from uuid import uuid4


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive and
    assumed to be UTC. Stored documents carry them as ISO 8601 strings,
    which keeps lexical and chronological order identical.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_document_id() -> str:
    """Return a fresh opaque document identifier."""
    return uuid4().hex


def format_timestamp(value: datetime) -> str:
    """
    Format a UTC datetime the way documents store it.

    Always includes microseconds so stored timestamps have a fixed width
    and sort chronologically as plain strings.
    """
    return value.isoformat(timespec="microseconds")
