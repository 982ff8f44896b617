"""
In-Memory Document Store

Implements the realtime store contract without any network. Used by the test
suite and by offline mode (`storage_backend=memory`).

Snapshots are delivered with `loop.call_soon`, never synchronously from the
write call, so consumers observe the same asynchronous delivery they get
from Firestore.
"""

import asyncio
import copy
from itertools import count
from typing import Any, Callable, Optional
from uuid import uuid4

from src.services.storage.interface import (
    AlreadyExistsError,
    CollectionCallback,
    DocumentCallback,
    DocumentStoreInterface,
    ErrorCallback,
    ListenerRegistration,
    NotFoundError,
    StoreDocument,
    normalize_collection_path,
    split_document_path,
)


class _Listener:
    def __init__(
        self,
        key: int,
        loop: asyncio.AbstractEventLoop,
        collection_path: str,
        document_id: Optional[str],
        on_snapshot: Callable,
        on_error: ErrorCallback,
    ):
        self.key = key
        self.loop = loop
        self.collection_path = collection_path
        self.document_id = document_id
        self.on_snapshot = on_snapshot
        self.on_error = on_error


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dictionary-backed store with realtime listeners.

    Collections are keyed by their normalized path; each maps document id
    to a plain dict.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._listeners: dict[int, _Listener] = {}
        self._keys = count(1)

    # ------------------------------------------------------------------
    # Reads used by tests and diagnostics
    # ------------------------------------------------------------------

    def get_document(self, document_path: str) -> Optional[dict[str, Any]]:
        collection_path, document_id = split_document_path(document_path)
        data = self._collections.get(collection_path, {}).get(document_id)
        return copy.deepcopy(data) if data is not None else None

    def list_documents(self, collection_path: str) -> list[StoreDocument]:
        collection_path = normalize_collection_path(collection_path)
        return self._collection_snapshot(collection_path)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def listen_collection(
        self,
        collection_path: str,
        on_snapshot: CollectionCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        collection_path = normalize_collection_path(collection_path)
        listener = self._register(collection_path, None, on_snapshot, on_error)
        self._schedule(listener)
        return ListenerRegistration(lambda: self._listeners.pop(listener.key, None))

    def listen_document(
        self,
        document_path: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        collection_path, document_id = split_document_path(document_path)
        listener = self._register(collection_path, document_id, on_snapshot, on_error)
        self._schedule(listener)
        return ListenerRegistration(lambda: self._listeners.pop(listener.key, None))

    def fail_listeners(self, path: str, error: Exception) -> None:
        """Deliver `error` to every listener on `path` (collection or document)."""
        for listener in list(self._listeners.values()):
            if self._listener_path(listener) == path.strip("/"):
                listener.loop.call_soon(self._deliver_error, listener.key, error)

    def _register(
        self,
        collection_path: str,
        document_id: Optional[str],
        on_snapshot: Callable,
        on_error: ErrorCallback,
    ) -> _Listener:
        listener = _Listener(
            key=next(self._keys),
            loop=asyncio.get_running_loop(),
            collection_path=collection_path,
            document_id=document_id,
            on_snapshot=on_snapshot,
            on_error=on_error,
        )
        self._listeners[listener.key] = listener
        return listener

    @staticmethod
    def _listener_path(listener: _Listener) -> str:
        if listener.document_id is None:
            return listener.collection_path
        return f"{listener.collection_path}/{listener.document_id}"

    def _schedule(self, listener: _Listener) -> None:
        if listener.document_id is None:
            payload: Any = self._collection_snapshot(listener.collection_path)
        else:
            payload = self._document_snapshot(listener.collection_path, listener.document_id)
        listener.loop.call_soon(self._deliver, listener.key, payload)

    def _deliver(self, key: int, payload: Any) -> None:
        listener = self._listeners.get(key)
        if listener is None:
            # Removed after the snapshot was scheduled
            return
        listener.on_snapshot(payload)

    def _deliver_error(self, key: int, error: Exception) -> None:
        listener = self._listeners.get(key)
        if listener is not None:
            listener.on_error(error)

    def _notify(self, collection_path: str, document_id: str) -> None:
        for listener in list(self._listeners.values()):
            if listener.collection_path != collection_path:
                continue
            if listener.document_id is not None and listener.document_id != document_id:
                continue
            self._schedule(listener)

    def _collection_snapshot(self, collection_path: str) -> list[StoreDocument]:
        documents = self._collections.get(collection_path, {})
        return [
            StoreDocument(id=document_id, data=copy.deepcopy(data))
            for document_id, data in documents.items()
        ]

    def _document_snapshot(self, collection_path: str, document_id: str) -> StoreDocument:
        data = self._collections.get(collection_path, {}).get(document_id)
        if data is None:
            return StoreDocument(id=document_id, exists=False)
        return StoreDocument(id=document_id, data=copy.deepcopy(data))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        collection_path = normalize_collection_path(collection_path)
        document_id = uuid4().hex[:20]
        self._collections.setdefault(collection_path, {})[document_id] = copy.deepcopy(data)
        self._notify(collection_path, document_id)
        return document_id

    async def set_document(
        self,
        document_path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        collection_path, document_id = split_document_path(document_path)
        documents = self._collections.setdefault(collection_path, {})
        if merge and document_id in documents:
            documents[document_id].update(copy.deepcopy(data))
        else:
            documents[document_id] = copy.deepcopy(data)
        self._notify(collection_path, document_id)

    async def create_document(self, document_path: str, data: dict[str, Any]) -> None:
        collection_path, document_id = split_document_path(document_path)
        documents = self._collections.setdefault(collection_path, {})
        if document_id in documents:
            raise AlreadyExistsError(f"Document already exists: {document_path}")
        documents[document_id] = copy.deepcopy(data)
        self._notify(collection_path, document_id)

    async def update_document(self, document_path: str, data: dict[str, Any]) -> None:
        collection_path, document_id = split_document_path(document_path)
        documents = self._collections.get(collection_path, {})
        if document_id not in documents:
            raise NotFoundError(f"Document not found: {document_path}")
        documents[document_id].update(copy.deepcopy(data))
        self._notify(collection_path, document_id)

    async def delete_document(self, document_path: str) -> None:
        collection_path, document_id = split_document_path(document_path)
        documents = self._collections.get(collection_path, {})
        if documents.pop(document_id, None) is not None:
            self._notify(collection_path, document_id)
