"""
Voice Capture Adapter

Wraps single-utterance speech capture and feeds the transcription to task
creation.

    IDLE -> LISTENING -> (RECOGNIZED | ERRORED | CANCELLED) -> IDLE

Only one capture runs at a time; `start_listening()` while listening does
nothing. If the host has no speech capability the adapter says so once, at
construction, and refuses to start.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.services.voice import (
    SpeechRecognizerInterface,
    VoiceCaptureError,
    VoiceUnsupportedError,
)


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class VoiceOutcome(str, Enum):
    RECOGNIZED = "recognized"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class VoiceCaptureAdapter:
    """Voice-to-task input."""

    def __init__(
        self,
        recognizer: SpeechRecognizerInterface,
        on_text: Callable[[str], Awaitable[bool]],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._recognizer = recognizer
        self._on_text = on_text
        self._audit = audit_logger or AuditLogger()
        self._state = VoiceState.IDLE
        self._capture: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self.last_outcome: Optional[VoiceOutcome] = None
        self.last_transcript: Optional[str] = None
        self.error_message: Optional[str] = None

        self.supported = self._check_capability()
        if not self.supported:
            self.error_message = VoiceUnsupportedError.user_message
            self._audit.log(AuditEventBuilder.capability_absent("voice_input"))

    def _check_capability(self) -> bool:
        try:
            return self._recognizer.is_available()
        except Exception:
            return False

    @property
    def state(self) -> VoiceState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state == VoiceState.LISTENING

    async def start_listening(self) -> Optional[VoiceOutcome]:
        """
        Capture one utterance and add it as a task.

        Returns the outcome, or None if capture was not started (unsupported
        or already listening).
        """
        if not self.supported or self.is_listening:
            return None

        self._state = VoiceState.LISTENING
        self._cancel_requested = False
        self.error_message = None
        self._capture = asyncio.ensure_future(self._recognizer.listen_once())
        try:
            text = await self._capture
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            return self._finish(VoiceOutcome.CANCELLED)
        except VoiceCaptureError as e:
            self.error_message = e.user_message
            self._audit.log(AuditEventBuilder.voice_failed(type(e).__name__, str(e)))
            if isinstance(e, VoiceUnsupportedError):
                self.supported = False
            return self._finish(VoiceOutcome.ERRORED)
        finally:
            self._capture = None
            self._state = VoiceState.IDLE

        self.last_transcript = text
        self._audit.log(AuditEventBuilder.voice_recognized(len(text)))
        await self._on_text(text)
        return self._finish(VoiceOutcome.RECOGNIZED)

    def cancel(self) -> None:
        """Abort an in-progress capture. No-op when idle."""
        if self._capture is not None and not self._capture.done():
            self._cancel_requested = True
            self._capture.cancel()

    def _finish(self, outcome: VoiceOutcome) -> VoiceOutcome:
        self.last_outcome = outcome
        return outcome
