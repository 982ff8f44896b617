"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for the realtime document
store. This allows us to:
1. Run against Firestore in production
2. Use in-memory storage for tests and offline mode
3. Keep the sync layer decoupled from any SDK

The store has realtime semantics: listeners receive the ENTIRE current state
of a collection (or document) on every change, never deltas. Listener
callbacks are always delivered on the event loop that registered them.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class StoreDocument(BaseModel):
    """One document as delivered in a snapshot."""
    model_config = ConfigDict(frozen=True)

    id: str
    data: dict[str, Any] = Field(default_factory=dict)
    exists: bool = True


CollectionCallback = Callable[[list[StoreDocument]], None]
DocumentCallback = Callable[[StoreDocument], None]
ErrorCallback = Callable[[Exception], None]


class ListenerRegistration:
    """
    Handle returned by the listen methods.

    `remove()` stops delivery and is safe to call any number of times.
    """

    def __init__(self, remove: Callable[[], None]):
        self._remove: Optional[Callable[[], None]] = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def remove(self) -> None:
        remove, self._remove = self._remove, None
        if remove is not None:
            remove()


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the realtime document store.

    Paths are slash-separated; collection paths have an odd number of
    segments, document paths an even number.
    """

    @abstractmethod
    def listen_collection(
        self,
        collection_path: str,
        on_snapshot: CollectionCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        """
        Subscribe to a collection.

        Must be called from a running event loop. `on_snapshot` receives the
        full list of documents once initially and again after every change.

        Raises:
            StorageError: If the listener cannot be registered
        """
        pass

    @abstractmethod
    def listen_document(
        self,
        document_path: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        """
        Subscribe to a single document.

        A missing document is delivered with `exists=False`.

        Raises:
            StorageError: If the listener cannot be registered
        """
        pass

    @abstractmethod
    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        """
        Create a document with a store-assigned id.

        Returns:
            The new document id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def set_document(
        self,
        document_path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        """
        Write a document.

        With `merge=True` only the given fields are written and all other
        fields are preserved; otherwise the document is replaced.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def create_document(self, document_path: str, data: dict[str, Any]) -> None:
        """
        Write a document only if it does not exist yet.

        Raises:
            AlreadyExistsError: If the document already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_document(self, document_path: str, data: dict[str, Any]) -> None:
        """
        Update fields of an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_document(self, document_path: str) -> None:
        """
        Delete a document. Deleting a missing document is not an error.

        Raises:
            StorageError: If the write fails
        """
        pass


def split_document_path(document_path: str) -> tuple[str, str]:
    """Split 'a/b/c/d' into ('a/b/c', 'd')."""
    parts = [p for p in document_path.strip("/").split("/") if p]
    if len(parts) < 2 or len(parts) % 2:
        raise ValueError(f"Not a document path: {document_path!r}")
    return "/".join(parts[:-1]), parts[-1]


def normalize_collection_path(collection_path: str) -> str:
    parts = [p for p in collection_path.strip("/").split("/") if p]
    if not parts or len(parts) % 2 == 0:
        raise ValueError(f"Not a collection path: {collection_path!r}")
    return "/".join(parts)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class AlreadyExistsError(StorageError):
    """Document already exists."""
    pass


class StoreUnavailableError(StorageError):
    """Could not connect to storage backend."""
    pass
