"""
Speech Recognition Service

Captures exactly one utterance from the default microphone and returns the
transcribed text. Uses the `speech_recognition` package with Google's free
web recognizer; microphone access goes through PyAudio, which is an
optional install. Without PyAudio (or without any input device) the
recognizer reports itself unavailable instead of failing at capture time.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import speech_recognition as sr

from src.config import get_settings
from src.config.settings import VoiceSettings


class VoiceCaptureError(Exception):
    """Base exception for voice capture."""

    user_message = "Voice input failed. Please try again."


class VoiceUnsupportedError(VoiceCaptureError):
    """No speech capability on this host."""

    user_message = "Voice input is not supported on this device."


class NoSpeechError(VoiceCaptureError):
    """Nothing intelligible was said before the timeout."""

    user_message = "No speech was detected. Please try again."


class MicrophonePermissionError(VoiceCaptureError):
    """The microphone could not be opened."""

    user_message = "Microphone access was denied. Check your permissions."


class RecognitionServiceError(VoiceCaptureError):
    """The transcription service could not be reached."""

    user_message = "The speech service is unavailable. Please try again later."


class SpeechRecognizerInterface(ABC):
    """Single-utterance speech-to-text capture."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether capture can work at all on this host."""
        pass

    @abstractmethod
    async def listen_once(self) -> str:
        """
        Capture one utterance and return its transcription.

        Raises:
            VoiceCaptureError: Or one of its subclasses
        """
        pass


class GoogleSpeechRecognizer(SpeechRecognizerInterface):
    """speech_recognition + PyAudio microphone + Google Web Speech API."""

    def __init__(self, settings: Optional[VoiceSettings] = None):
        self._settings = settings or get_settings().voice

    def is_available(self) -> bool:
        try:
            return bool(sr.Microphone.list_microphone_names())
        except (AttributeError, OSError):
            # AttributeError: PyAudio is not installed
            return False

    async def listen_once(self) -> str:
        return await asyncio.to_thread(self._capture)

    def _capture(self) -> str:
        recognizer = sr.Recognizer()
        try:
            with sr.Microphone() as source:
                recognizer.adjust_for_ambient_noise(source, duration=0.3)
                audio = recognizer.listen(
                    source,
                    timeout=self._settings.listen_timeout_seconds,
                    phrase_time_limit=self._settings.phrase_time_limit_seconds,
                )
        except sr.WaitTimeoutError:
            raise NoSpeechError("Timed out waiting for speech")
        except AttributeError as e:
            raise VoiceUnsupportedError(str(e))
        except OSError as e:
            raise MicrophonePermissionError(f"Could not open microphone: {e}")

        try:
            text = recognizer.recognize_google(audio, language=self._settings.language)
        except sr.UnknownValueError:
            raise NoSpeechError("Speech was not understood")
        except sr.RequestError as e:
            raise RecognitionServiceError(str(e))

        return text.strip()
