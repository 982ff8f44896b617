"""Services package."""

from src.services.audio import (
    RINGTONES,
    AudioOutputError,
    ToneOutputInterface,
    ToneStep,
)
from src.services.auth import (
    AuthenticationError,
    AuthProviderInterface,
    AuthUser,
    FirebaseAuthProvider,
    LocalAuthProvider,
)
from src.services.storage import (
    AlreadyExistsError,
    DocumentStoreInterface,
    InMemoryDocumentStore,
    ListenerRegistration,
    NotFoundError,
    StorageError,
    StoreDocument,
    StoreUnavailableError,
)
from src.services.voice import (
    GoogleSpeechRecognizer,
    SpeechRecognizerInterface,
    VoiceCaptureError,
)

__all__ = [
    # Audio services
    "RINGTONES",
    "AudioOutputError",
    "ToneOutputInterface",
    "ToneStep",
    # Auth services
    "AuthenticationError",
    "AuthProviderInterface",
    "AuthUser",
    "FirebaseAuthProvider",
    "LocalAuthProvider",
    # Storage services
    "AlreadyExistsError",
    "DocumentStoreInterface",
    "InMemoryDocumentStore",
    "ListenerRegistration",
    "NotFoundError",
    "StorageError",
    "StoreDocument",
    "StoreUnavailableError",
    # Voice services
    "GoogleSpeechRecognizer",
    "SpeechRecognizerInterface",
    "VoiceCaptureError",
]
