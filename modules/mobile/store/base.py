"""
Document Store Interface.

The contract every backing document store implements. Repositories depend
only on this protocol, so a backend (in-memory, Redis, ...) is chosen at
wiring time and swapped freely in tests.

A store keeps schemaless documents grouped in named collections. Queries
are equality filters plus an optional single-field ordering, which is all
the notes screens need.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from modules.mobile.core.streams import Subscription


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document identifier with its body at one point in time."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Query:
    """
    Equality-filtered, optionally ordered query over one collection.

    Example:
        Query("notes", where=(("ownerId", "u1"),), order_by="createdAt", descending=True)
    """

    collection: str
    where: tuple[tuple[str, Any], ...] = ()
    order_by: str | None = None
    descending: bool = False

    def matches(self, data: dict[str, Any]) -> bool:
        """Whether a document body satisfies every equality filter."""
        return all(data.get(name) == value for name, value in self.where)

    def apply(self, snapshots: Iterable[DocumentSnapshot]) -> list[DocumentSnapshot]:
        """
        Filter then order snapshots.

        Values of different types never compare with each other: missing
        values rank lowest, then numbers, then strings, then anything else
        by its repr. Descending order reverses the whole ranking, so
        documents missing the order field come last.
        """
        selected = [s for s in snapshots if self.matches(s.data)]
        if self.order_by is None:
            return selected
        order_by = self.order_by
        return sorted(
            selected,
            key=lambda snapshot: _order_key(snapshot.data.get(order_by)),
            reverse=self.descending,
        )


def _order_key(value: Any) -> tuple[int, str, float]:
    if value is None:
        return (0, "", 0)
    if isinstance(value, (int, float)):
        return (1, "", value)
    if isinstance(value, str):
        return (2, value, 0)
    return (3, repr(value), 0)


SnapshotHandler = Callable[[list[DocumentSnapshot]], None]
ErrorHandler = Callable[[Exception], None]


@runtime_checkable
class DocumentStore(Protocol):
    """Common interface shared by all document store backends."""

    async def get_documents(self, query: Query) -> list[DocumentSnapshot]:
        """Run query once and return the matching documents."""
        ...

    def watch(
        self,
        query: Query,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> Subscription:
        """
        Open a live query.

        on_snapshot receives the full result set first, then again after
        every change that affects it. Delivery happens on the running event
        loop, never inline with the caller.
        """
        ...

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document and return its new identifier."""
        ...

    async def update_document(
        self, collection: str, document_id: str, data: dict[str, Any],
    ) -> None:
        """Merge data into an existing document. Raises NotFoundError if missing."""
        ...

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Remove a document. Removing a missing document is a no-op."""
        ...

    async def close(self) -> None:
        """Release connections and cancel open watches."""
        ...
