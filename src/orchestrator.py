"""
Main Orchestrator for the Task & Budget Tracker

This module ties the components together and defines the session flow:

    sign in → (user id ready) → open settings, tasks and transactions
            → snapshots update channels → report recomputed → shell renders
    user action → MutationGateway → store → next snapshot

DESIGN DECISION: The session enforces the boundaries:
- No store path is subscribed or written before the identity is ready
- Exactly one subscription per collection is live at any time
- Every step is audited

The shell only talks to an AppSession; it never touches the store directly.
"""

from typing import Callable, Optional

from src.audit import AuditLogger, configure_logging, create_correlation_id
from src.config import Settings, get_settings
from src.models.audit import AuditEventBuilder
from src.services.audio import AudioOutputError, ToneOutputInterface
from src.services.auth import AuthProviderInterface, FirebaseAuthProvider, LocalAuthProvider
from src.services.storage import (
    DocumentStoreInterface,
    InMemoryDocumentStore,
    StoreUnavailableError,
)
from src.services.voice import GoogleSpeechRecognizer, SpeechRecognizerInterface
from src.sync import (
    AlarmPlayer,
    BackgroundTasks,
    IdentityBootstrap,
    IdentityState,
    MutationGateway,
    SettingsStore,
    UserPaths,
    VoiceCaptureAdapter,
    create_task_channel,
    create_transaction_channel,
    epoch_millis,
)
from src.views import DerivedViewEngine


class AppSession:
    """
    One running client: identity, synced state, write path and adapters.

    Lifecycle:
        async with AppSession(...) as session:   # calls start()
            await session.gateway.add_task("Buy milk")
        # close(): every subscription removed, audio released

    `start()` and `close()` must run on the event loop that owns the store
    listeners.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        auth_provider: AuthProviderInterface,
        recognizer: SpeechRecognizerInterface,
        output_factory: Callable[[], ToneOutputInterface],
        app_id: str = "default-app-id",
        initial_auth_token: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
        repeat_pause_ms: int = 500,
        clock: Callable[[], int] = epoch_millis,
        offline: bool = False,
    ):
        self.audit = audit_logger or AuditLogger()
        self.store = store
        self.app_id = app_id
        self.offline = offline
        self.background = BackgroundTasks()

        self.bootstrap = IdentityBootstrap(auth_provider, initial_auth_token, self.audit)
        self.settings = SettingsStore(store, self.audit, self.background)
        self.tasks = create_task_channel(store, self.audit)
        self.transactions = create_transaction_channel(store, self.audit)
        self.gateway = MutationGateway(store, self.tasks, self.audit, clock=clock)
        self.views = DerivedViewEngine(self.tasks, self.transactions, self.settings, self.audit)
        self.voice = VoiceCaptureAdapter(recognizer, self.gateway.add_task, self.audit)
        self.alarm = AlarmPlayer(
            output_factory,
            repeat_pause_ms=repeat_pause_ms,
            audit_logger=self.audit,
        )

        self._paths: Optional[UserPaths] = None
        self._remove_identity_listener: Optional[Callable[[], None]] = None
        self._closed = False

    @property
    def identity(self) -> IdentityState:
        return self.bootstrap.state

    @property
    def paths(self) -> Optional[UserPaths]:
        return self._paths

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> IdentityState:
        """
        Sign in and, once the identity is ready, open every subscription.

        Returns the identity state. A failed sign-in leaves the session
        without data access; nothing is retried.
        """
        if self._closed:
            return self.bootstrap.state
        if self._remove_identity_listener is None:
            self._remove_identity_listener = self.bootstrap.add_listener(self._on_identity)
        return await self.bootstrap.resolve()

    async def retry_sign_in(self) -> IdentityState:
        """Explicit, user-requested second sign-in attempt."""
        self.bootstrap.reset()
        return await self.start()

    async def close(self) -> None:
        """Tear everything down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        self.voice.cancel()
        self.alarm.stop()
        if self._remove_identity_listener is not None:
            self._remove_identity_listener()
            self._remove_identity_listener = None
        self._detach()
        self.views.detach()
        # Let an in-flight default settings write finish
        await self.background.drain()

    async def __aenter__(self) -> "AppSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _on_identity(self, state: IdentityState) -> None:
        if self._closed:
            return
        if not state.can_access_data:
            self._detach()
            return

        paths = UserPaths(app_id=self.app_id, user_id=state.user_id)
        if paths == self._paths:
            return

        self._paths = paths
        self.gateway.bind(paths)
        self.settings.load(state.user_id, paths.settings_document)
        self.tasks.open(paths.tasks_collection)
        self.transactions.open(paths.transactions_collection)

    def _detach(self) -> None:
        self._paths = None
        self.gateway.bind(None)
        self.settings.close()
        self.tasks.close()
        self.transactions.close()


def create_tone_output_factory(settings: Settings) -> Callable[[], ToneOutputInterface]:
    """
    Output factory for the alarm player.

    PyAudio is an optional install; without it every `play()` reports the
    output as unavailable.
    """
    def factory() -> ToneOutputInterface:
        try:
            from src.services.audio.pyaudio_output import PyAudioToneOutput
        except ImportError as e:
            raise AudioOutputError(f"Audio output unavailable, PyAudio is not installed: {e}")
        return PyAudioToneOutput(settings.audio)

    return factory


def create_app_components(settings: Optional[Settings] = None) -> AppSession:
    """
    Factory function to create an application session.

    Args:
        settings: Configuration; the cached global settings if omitted.

    Returns:
        An AppSession that has not been started. With
        `STORAGE_BACKEND=memory`, or when Firestore cannot be reached,
        it runs on an in-memory store with a local identity.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)
    audit_logger = AuditLogger(correlation_id=create_correlation_id())

    store: Optional[DocumentStoreInterface] = None
    auth_provider: Optional[AuthProviderInterface] = None

    if app_settings.storage_backend == "firestore":
        from src.services.storage.firestore import FirestoreClient, FirestoreDocumentStore

        try:
            client = FirestoreClient(settings.firebase)
            client.connect()
            store = FirestoreDocumentStore(client)
            auth_provider = FirebaseAuthProvider(settings.firebase)
        except StoreUnavailableError as e:
            # Storage not configured - continue offline
            audit_logger.log(AuditEventBuilder.capability_absent("firestore", str(e)))

    offline = store is None
    if offline:
        store = InMemoryDocumentStore()
        auth_provider = LocalAuthProvider(app_settings.local_user_id)

    return AppSession(
        store=store,
        auth_provider=auth_provider,
        recognizer=GoogleSpeechRecognizer(settings.voice),
        output_factory=create_tone_output_factory(settings),
        app_id=app_settings.app_id,
        initial_auth_token=None if offline else app_settings.initial_auth_token,
        audit_logger=audit_logger,
        repeat_pause_ms=settings.audio.repeat_pause_ms,
        offline=offline,
    )
