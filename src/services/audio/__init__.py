"""
Audio services package.

The PyAudio backend lives in `pyaudio_output` and is imported on demand,
because PyAudio is an optional install.
"""

from src.services.audio.output import AudioOutputError, ToneOutputInterface
from src.services.audio.ringtones import RINGTONES, ToneStep, pattern_duration_ms

__all__ = [
    "AudioOutputError",
    "RINGTONES",
    "ToneOutputInterface",
    "ToneStep",
    "pattern_duration_ms",
]
