"""
PyAudio tone output.

Runs a callback-mode output stream that synthesizes a sine wave at the
current frequency. The phase is carried across callbacks so frequency
changes don't click. Requires the optional `audio` extra (PyAudio).
"""

import math
import threading
from typing import Optional

import numpy as np
import pyaudio

from src.config import get_settings
from src.config.settings import AudioSettings
from src.services.audio.output import AudioOutputError, ToneOutputInterface


class PyAudioToneOutput(ToneOutputInterface):
    """Sine oscillator on the default PyAudio output device."""

    def __init__(self, settings: Optional[AudioSettings] = None):
        self._settings = settings or get_settings().audio
        self._lock = threading.Lock()
        self._frequency = 0.0
        self._phase = 0.0
        self._audio: Optional[pyaudio.PyAudio] = None
        self._stream = None

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            self._audio = pyaudio.PyAudio()
            self._stream = self._audio.open(
                format=pyaudio.paFloat32,
                channels=1,
                rate=self._settings.sample_rate,
                output=True,
                stream_callback=self._callback,
            )
            self._stream.start_stream()
        except (OSError, ValueError) as e:
            self.close()
            raise AudioOutputError(f"Could not open audio output: {e}")

    def set_frequency(self, frequency_hz: float) -> None:
        with self._lock:
            self._frequency = max(0.0, float(frequency_hz))
            if self._frequency == 0:
                self._phase = 0.0

    def close(self) -> None:
        self.set_frequency(0)
        stream, self._stream = self._stream, None
        audio, self._audio = self._audio, None
        if stream is not None:
            stream.stop_stream()
            stream.close()
        if audio is not None:
            audio.terminate()

    def _callback(self, in_data, frame_count, time_info, status):
        with self._lock:
            frequency = self._frequency
            phase = self._phase
            if frequency > 0:
                step = 2 * math.pi * frequency / self._settings.sample_rate
                self._phase = (phase + step * frame_count) % (2 * math.pi)

        if frequency <= 0:
            samples = np.zeros(frame_count, dtype=np.float32)
        else:
            angles = phase + step * np.arange(frame_count)
            samples = (self._settings.gain * np.sin(angles)).astype(np.float32)
        return samples.tobytes(), pyaudio.paContinue
