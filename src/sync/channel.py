"""
Collection Sync Channel

One channel per synced collection (tasks, transactions). A channel listens to
a store path, and on every snapshot:
1. normalizes each document into its model (malformed ones are skipped)
2. applies the collection's total order
3. replaces its item sequence wholesale and publishes it

DESIGN DECISION: No incremental patching. Collections are small and per-user,
so rebuilding the whole sequence on each snapshot is simpler and can never
drift from the store.

A channel has at most one active subscription. Opening a new one closes the
previous one first, so a user switch can never leave a stale listener
feeding the current view.
"""

from functools import partial
from typing import Callable, Generic, Iterable, Optional, TypeVar

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.models.task import Task, order_tasks
from src.models.transaction import Transaction, order_transactions
from src.services.storage.interface import (
    DocumentStoreInterface,
    StorageError,
    StoreDocument,
)
from src.sync.subscription import Subscription


T = TypeVar("T")

Listener = Callable[[tuple], None]


class CollectionChannel(Generic[T]):
    """Realtime, ordered view of one store collection."""

    def __init__(
        self,
        name: str,
        store: DocumentStoreInterface,
        normalize: Callable[[StoreDocument], T],
        order: Callable[[Iterable[T]], list[T]],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.name = name
        self._store = store
        self._normalize = normalize
        self._order = order
        self._audit = audit_logger or AuditLogger()
        self._items: tuple[T, ...] = ()
        self._loaded = False
        self._stale = False
        self._active: Optional[Subscription[tuple[T, ...]]] = None
        self._path: Optional[str] = None
        self._listeners: list[Listener] = []

    @property
    def items(self) -> tuple[T, ...]:
        """The latest ordered snapshot."""
        return self._items

    @property
    def loaded(self) -> bool:
        """True once the first snapshot for the active path has arrived."""
        return self._loaded

    @property
    def stale(self) -> bool:
        """True when the subscription failed and `items` is the last known state."""
        return self._stale

    @property
    def active(self) -> Optional[Subscription[tuple[T, ...]]]:
        return self._active

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(items)` after every snapshot. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def open(self, path: str) -> Subscription[tuple[T, ...]]:
        """
        Subscribe to `path`, closing any active subscription first.

        Items from a different path are cleared until the first snapshot of
        the new path arrives. Re-opening the same path keeps the last known
        items, so a refused registration leaves the view frozen, not blank.
        """
        self.close()

        if path != self._path:
            self._items = ()
            self._loaded = False
        self._path = path

        subscription: Subscription[tuple[T, ...]] = Subscription(
            self.name, path, on_close=self._subscription_closed
        )
        self._active = subscription
        self._stale = False

        try:
            registration = self._store.listen_collection(
                path,
                partial(self._on_snapshot, subscription),
                partial(self._on_error, subscription),
            )
        except StorageError as e:
            self._stale = True
            self._audit.log(AuditEventBuilder.subscription_failed(self.name, path, str(e)))
            subscription.unsubscribe()
            return subscription

        subscription.attach(registration)
        self._audit.log(AuditEventBuilder.subscription_opened(self.name, path))
        return subscription

    def close(self) -> None:
        """Close the active subscription, if any. Idempotent."""
        if self._active is not None:
            self._active.unsubscribe()

    def _subscription_closed(self, subscription: Subscription) -> None:
        if self._active is subscription:
            self._active = None
        self._audit.log(AuditEventBuilder.subscription_closed(self.name, subscription.path))

    def _on_snapshot(
        self,
        subscription: Subscription[tuple[T, ...]],
        documents: list[StoreDocument],
    ) -> None:
        if subscription.closed or subscription is not self._active:
            return

        self._items = tuple(self._order(self._normalize_all(documents)))
        self._loaded = True
        self._stale = False
        subscription.deliver(self._items)
        self._notify()

    def _normalize_all(self, documents: list[StoreDocument]) -> list[T]:
        items = []
        for document in documents:
            try:
                items.append(self._normalize(document))
            except (ValueError, TypeError) as e:
                self._audit.log(
                    AuditEventBuilder.document_skipped(self.name, document.id, str(e))
                )
        return items

    def _on_error(self, subscription: Subscription, error: Exception) -> None:
        if subscription.closed or subscription is not self._active:
            return
        self._stale = True
        self._audit.log(
            AuditEventBuilder.subscription_failed(self.name, subscription.path, str(error))
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._items)
            except Exception as e:
                self._audit.log(AuditEventBuilder.system_error(
                    error_type=f"{self.name}_listener",
                    error_message=str(e),
                ))


def create_task_channel(
    store: DocumentStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
) -> CollectionChannel[Task]:
    return CollectionChannel(
        name="tasks",
        store=store,
        normalize=lambda document: Task.from_document(document.id, document.data),
        order=order_tasks,
        audit_logger=audit_logger,
    )


def create_transaction_channel(
    store: DocumentStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
) -> CollectionChannel[Transaction]:
    return CollectionChannel(
        name="transactions",
        store=store,
        normalize=lambda document: Transaction.from_document(document.id, document.data),
        order=order_transactions,
        audit_logger=audit_logger,
    )
