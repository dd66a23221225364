"""
Dependency Wiring.

Builds the document store, repositories and providers from configuration.
Nothing constructs its own backend connection: the store is passed to the
repository and the repository to the provider, so tests substitute fakes
at any layer.

Uses lazy initialization to prevent import-time failures when config is
not present.

Usage:
    from modules.mobile.core.dependencies import create_notes_provider

    provider = create_notes_provider()
"""

from typing import Any

from modules.mobile.core.logging import get_logger
from modules.mobile.providers.notes import NotesProvider
from modules.mobile.repositories.notes import NotesRepository
from modules.mobile.store.base import DocumentStore

logger = get_logger(__name__)

# Module-level state for lazy initialization
_store: Any = None


def create_document_store() -> DocumentStore:
    """
    Create the document store selected in store.yaml.

    Returns:
        A MemoryDocumentStore or RedisDocumentStore
    """
    from modules.mobile.core.config import get_app_config

    store_config = get_app_config().store

    if store_config.backend == "redis":
        from modules.mobile.core.config import get_redis_url
        from modules.mobile.store.redis_store import RedisDocumentStore

        store = RedisDocumentStore.from_url(
            get_redis_url(),
            key_prefix=store_config.redis.key_prefix,
        )
    else:
        from modules.mobile.store.memory import MemoryDocumentStore

        store = MemoryDocumentStore()

    logger.debug("Document store created", extra={"backend": store_config.backend})
    return store


def get_document_store() -> DocumentStore:
    """
    Get the shared document store, creating it on first use.

    Returns:
        The process-wide DocumentStore
    """
    global _store
    if _store is None:
        _store = create_document_store()
    return _store


async def close_document_store() -> None:
    """Close the shared document store if one was created."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
        logger.debug("Document store closed")


def create_notes_repository(store: DocumentStore | None = None) -> NotesRepository:
    """
    Create a NotesRepository.

    Args:
        store: Store to use; the shared store when omitted
    """
    from modules.mobile.core.config import get_app_config

    collection = get_app_config().store.notes_collection
    return NotesRepository(store or get_document_store(), collection=collection)


def create_notes_provider(
    store: DocumentStore | None = None,
    repository: NotesRepository | None = None,
) -> NotesProvider:
    """
    Create a NotesProvider wired to a repository.

    Args:
        store: Store for a new repository (ignored when repository is given)
        repository: Repository to use directly
    """
    return NotesProvider(repository or create_notes_repository(store))
