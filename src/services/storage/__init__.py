"""
Storage Services Package

Provides the abstract realtime document store and its implementations.
Firestore is the production backend; the in-memory store backs tests and
offline mode. The Firestore backend is imported lazily so the SDK is only
loaded when it is actually used.
"""

from src.services.storage.interface import (
    AlreadyExistsError,
    DocumentStoreInterface,
    ListenerRegistration,
    NotFoundError,
    StorageError,
    StoreDocument,
    StoreUnavailableError,
)
from src.services.storage.memory import InMemoryDocumentStore

__all__ = [
    # Interfaces
    "DocumentStoreInterface",
    "ListenerRegistration",
    "StoreDocument",
    # Exceptions
    "AlreadyExistsError",
    "NotFoundError",
    "StorageError",
    "StoreUnavailableError",
    # In-memory implementation
    "InMemoryDocumentStore",
]
