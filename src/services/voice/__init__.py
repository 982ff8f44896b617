"""Voice capture services package."""

from src.services.voice.recognizer import (
    GoogleSpeechRecognizer,
    MicrophonePermissionError,
    NoSpeechError,
    RecognitionServiceError,
    SpeechRecognizerInterface,
    VoiceCaptureError,
    VoiceUnsupportedError,
)

__all__ = [
    "GoogleSpeechRecognizer",
    "MicrophonePermissionError",
    "NoSpeechError",
    "RecognitionServiceError",
    "SpeechRecognizerInterface",
    "VoiceCaptureError",
    "VoiceUnsupportedError",
]
