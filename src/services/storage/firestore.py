"""
Firestore Storage Implementation

DESIGN DECISION: Firestore is the production backend because:
1. It pushes full query snapshots on every change (realtime listeners)
2. Per-user data nests naturally under users/{uid}/...
3. Merge writes are a native operation

TRADEOFFS:
- The Python SDK delivers listener callbacks on its own watch threads.
  Every callback is handed to the registering event loop with
  call_soon_threadsafe, so the sync layer stays single-threaded.
- SDK writes are blocking; they run in a worker thread.
"""

import asyncio
from typing import Any, Callable, Optional

import firebase_admin
import structlog
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.config.settings import FirebaseSettings
from src.services.storage.interface import (
    AlreadyExistsError,
    CollectionCallback,
    DocumentCallback,
    DocumentStoreInterface,
    ErrorCallback,
    ListenerRegistration,
    NotFoundError,
    StorageError,
    StoreDocument,
    StoreUnavailableError,
    normalize_collection_path,
    split_document_path,
)


logger = structlog.get_logger(__name__)

APP_NAME = "task-budget-tracker"


class FirestoreClient:
    """
    Low-level Firestore client wrapper.

    Handles firebase_admin app initialization and provides retry logic for
    the connection step only.
    """

    def __init__(self, settings: Optional[FirebaseSettings] = None):
        self._settings = settings or get_settings().firebase
        self._client: Optional[Any] = None

    @retry(
        retry=retry_if_exception_type(StoreUnavailableError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self):
        """
        Initialize the Firebase app and return a Firestore client.

        Uses the configured service account, or application default
        credentials when no credentials path is set.
        """
        if self._client is None:
            try:
                app = self._get_or_create_app()
                self._client = firestore.client(app)
            except FileNotFoundError:
                raise StoreUnavailableError(
                    f"Firebase credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreUnavailableError(f"Failed to connect to Firestore: {e}")

        return self._client

    def _get_or_create_app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(APP_NAME)
        except ValueError:
            pass

        if self._settings.credentials_path:
            cred = credentials.Certificate(self._settings.credentials_path)
        else:
            cred = credentials.ApplicationDefault()

        options = {}
        if self._settings.project_id:
            options["projectId"] = self._settings.project_id
        return firebase_admin.initialize_app(cred, options, name=APP_NAME)


class FirestoreDocumentStore(DocumentStoreInterface):
    """
    Firestore implementation of the realtime document store.
    """

    def __init__(self, client: Optional[FirestoreClient] = None):
        self._client = client or FirestoreClient()

    @property
    def _db(self):
        return self._client.connect()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def _marshal(
        self,
        loop: asyncio.AbstractEventLoop,
        convert: Callable[[Any], Any],
        on_snapshot: Callable[[Any], None],
        on_error: ErrorCallback,
    ):
        """Build a watch callback that converts on the watch thread and delivers on `loop`."""
        state = {"active": True}

        def deliver(payload: Any) -> None:
            if state["active"]:
                on_snapshot(payload)

        def fail(error: Exception) -> None:
            if state["active"]:
                on_error(error)

        def callback(snapshots, changes, read_time) -> None:
            try:
                payload = convert(snapshots)
            except Exception as e:
                handler: Callable[[Any], None] = fail
                payload = StorageError(f"Failed to read snapshot: {e}")
            else:
                handler = deliver
            try:
                loop.call_soon_threadsafe(handler, payload)
            except RuntimeError:
                # Loop already closed; the session is gone
                logger.warning("firestore_snapshot_dropped", reason="event loop closed")

        return callback, state

    def listen_collection(
        self,
        collection_path: str,
        on_snapshot: CollectionCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        collection_path = normalize_collection_path(collection_path)
        loop = asyncio.get_running_loop()

        def convert(snapshots) -> list[StoreDocument]:
            return [
                StoreDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                for snapshot in snapshots
            ]

        callback, state = self._marshal(loop, convert, on_snapshot, on_error)
        try:
            watch = self._db.collection(collection_path).on_snapshot(callback)
        except Exception as e:
            raise StorageError(f"Failed to listen to {collection_path}: {e}")

        def remove() -> None:
            state["active"] = False
            watch.unsubscribe()

        return ListenerRegistration(remove)

    def listen_document(
        self,
        document_path: str,
        on_snapshot: DocumentCallback,
        on_error: ErrorCallback,
    ) -> ListenerRegistration:
        split_document_path(document_path)
        loop = asyncio.get_running_loop()

        def convert(snapshots) -> StoreDocument:
            snapshot = snapshots[0]
            if not snapshot.exists:
                return StoreDocument(id=snapshot.id, exists=False)
            return StoreDocument(id=snapshot.id, data=snapshot.to_dict() or {})

        callback, state = self._marshal(loop, convert, on_snapshot, on_error)
        try:
            watch = self._db.document(document_path.strip("/")).on_snapshot(callback)
        except Exception as e:
            raise StorageError(f"Failed to listen to {document_path}: {e}")

        def remove() -> None:
            state["active"] = False
            watch.unsubscribe()

        return ListenerRegistration(remove)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        collection_path = normalize_collection_path(collection_path)
        try:
            _, reference = await asyncio.to_thread(
                self._db.collection(collection_path).add, data
            )
            return reference.id
        except Exception as e:
            raise StorageError(f"Failed to add document to {collection_path}: {e}")

    async def set_document(
        self,
        document_path: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        split_document_path(document_path)
        try:
            await asyncio.to_thread(
                self._db.document(document_path.strip("/")).set, data, merge=merge
            )
        except Exception as e:
            raise StorageError(f"Failed to write {document_path}: {e}")

    async def create_document(self, document_path: str, data: dict[str, Any]) -> None:
        split_document_path(document_path)
        try:
            await asyncio.to_thread(self._db.document(document_path.strip("/")).create, data)
        except (google_exceptions.AlreadyExists, google_exceptions.Conflict):
            raise AlreadyExistsError(f"Document already exists: {document_path}")
        except Exception as e:
            raise StorageError(f"Failed to create {document_path}: {e}")

    async def update_document(self, document_path: str, data: dict[str, Any]) -> None:
        split_document_path(document_path)
        try:
            await asyncio.to_thread(self._db.document(document_path.strip("/")).update, data)
        except google_exceptions.NotFound:
            raise NotFoundError(f"Document not found: {document_path}")
        except Exception as e:
            raise StorageError(f"Failed to update {document_path}: {e}")

    async def delete_document(self, document_path: str) -> None:
        split_document_path(document_path)
        try:
            await asyncio.to_thread(self._db.document(document_path.strip("/")).delete)
        except Exception as e:
            raise StorageError(f"Failed to delete {document_path}: {e}")
