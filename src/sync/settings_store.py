"""
Settings Store

Single-document variant of the sync channel. Keeps the current user's
settings, seeds the default document the first time a user has none, and
saves partial updates as merge writes.

DESIGN DECISION: Saves are optimistic. The local settings change first and
stay changed even if the write fails; the failure is only logged. Local and
remote can therefore disagree after a failed write until the next remote
snapshot for that field arrives.
"""

from functools import partial
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.models.user_settings import (
    PRESENTATION_THEMES,
    PresentationTheme,
    SettingsUpdate,
    UserSettings,
    merge_settings,
)
from src.services.storage.interface import (
    AlreadyExistsError,
    DocumentStoreInterface,
    StorageError,
    StoreDocument,
)
from src.sync.background import BackgroundTasks
from src.sync.subscription import Subscription


SettingsListener = Callable[[UserSettings], None]

REMOTE_FIELDS = frozenset(UserSettings().to_document())


class SettingsStore:
    """Realtime settings for the signed-in user."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        background: Optional[BackgroundTasks] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._background = background or BackgroundTasks()
        self._settings = UserSettings()
        self._user_id: Optional[str] = None
        self._document_path: Optional[str] = None
        self._loaded = False
        self._active: Optional[Subscription[UserSettings]] = None
        self._seeded: set[str] = set()
        self._listeners: list[SettingsListener] = []

    @property
    def settings(self) -> UserSettings:
        return self._settings

    @property
    def theme(self) -> PresentationTheme:
        return PRESENTATION_THEMES[self._settings.theme]

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def loaded(self) -> bool:
        """True once a settings document has been received for this user."""
        return self._loaded

    @property
    def active(self) -> Optional[Subscription[UserSettings]]:
        return self._active

    def add_listener(self, listener: SettingsListener) -> Callable[[], None]:
        """Call `listener(settings)` on every change. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def load(self, user_id: str, document_path: str) -> Subscription[UserSettings]:
        """Subscribe to `user_id`'s settings document, closing any previous subscription."""
        self.close()

        if user_id != self._user_id:
            # Never show one user's settings to another
            self._settings = UserSettings()
            self._notify()
        self._user_id = user_id
        self._document_path = document_path
        self._loaded = False

        subscription: Subscription[UserSettings] = Subscription(
            "settings", document_path, on_close=self._subscription_closed
        )
        self._active = subscription

        try:
            registration = self._store.listen_document(
                document_path,
                partial(self._on_snapshot, subscription, user_id),
                partial(self._on_error, subscription),
            )
        except StorageError as e:
            self._audit.log(AuditEventBuilder.subscription_failed("settings", document_path, str(e)))
            subscription.unsubscribe()
            return subscription

        subscription.attach(registration)
        self._audit.log(AuditEventBuilder.subscription_opened("settings", document_path))
        return subscription

    def close(self) -> None:
        if self._active is not None:
            self._active.unsubscribe()

    async def save(self, update: Union[SettingsUpdate, dict[str, Any]]) -> bool:
        """
        Merge-write the fields present in `update`.

        Returns True if the write succeeded. The local settings reflect the
        update either way.
        """
        if not isinstance(update, SettingsUpdate):
            update = SettingsUpdate.model_validate(update)

        fields = update.to_document()
        if self._document_path is None:
            self._audit.log(AuditEventBuilder.mutation_ignored("save_settings", "no user loaded"))
            return False
        if not fields:
            self._audit.log(AuditEventBuilder.mutation_ignored("save_settings", "nothing to save"))
            return False

        self._settings = merge_settings(self._settings, update)
        self._notify()

        path = self._document_path
        try:
            await self._store.set_document(path, fields, merge=True)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("save_settings", path, str(e)))
            return False

        self._audit.log(AuditEventBuilder.settings_saved(sorted(fields)))
        return True

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    def _subscription_closed(self, subscription: Subscription) -> None:
        if self._active is subscription:
            self._active = None
        self._audit.log(AuditEventBuilder.subscription_closed("settings", subscription.path))

    def _on_snapshot(
        self,
        subscription: Subscription[UserSettings],
        user_id: str,
        document: StoreDocument,
    ) -> None:
        if subscription.closed or subscription is not self._active:
            return

        if not document.exists:
            if user_id not in self._seeded:
                self._seeded.add(user_id)
                self._background.spawn(self._write_defaults(user_id, subscription.path))
            return

        self._apply_remote(document)
        self._loaded = True
        subscription.deliver(self._settings)
        self._notify()

    def _apply_remote(self, document: StoreDocument) -> None:
        known = {key: value for key, value in document.data.items() if key in REMOTE_FIELDS}
        try:
            self._settings = UserSettings.model_validate({**self._settings.to_document(), **known})
        except ValidationError as e:
            self._audit.log(AuditEventBuilder.document_skipped("settings", document.id, str(e)))

    async def _write_defaults(self, user_id: str, path: str) -> None:
        # Local state may already hold optimistic saves; write those rather than bare defaults
        data = self._settings.to_document() if self._user_id == user_id else UserSettings().to_document()
        try:
            await self._store.create_document(path, data)
        except AlreadyExistsError:
            # Created elsewhere since the missing snapshot; the listener delivers it
            return
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("create_default_settings", path, str(e)))
            return
        self._audit.log(AuditEventBuilder.settings_defaults_created(user_id))

    def _on_error(self, subscription: Subscription, error: Exception) -> None:
        if subscription.closed or subscription is not self._active:
            return
        self._audit.log(
            AuditEventBuilder.subscription_failed("settings", subscription.path, str(error))
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._settings)
            except Exception as e:
                self._audit.log(AuditEventBuilder.system_error(
                    error_type="settings_listener",
                    error_message=str(e),
                ))
