"""
Tone Output Interface

The audio device is one shared resource. An output is opened when a pattern
starts, driven by frequency changes while it plays, and closed when playback
stops. Implementations must make `close()` idempotent.
"""

from abc import ABC, abstractmethod


class AudioOutputError(Exception):
    """The audio device could not be opened or driven."""
    pass


class ToneOutputInterface(ABC):
    """An oscillator feeding the default output device."""

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the device. Output starts silent.

        Raises:
            AudioOutputError: If no output device is available
        """
        pass

    @abstractmethod
    def set_frequency(self, frequency_hz: float) -> None:
        """Switch the oscillator to `frequency_hz`; 0 silences it."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Silence and release the device."""
        pass
