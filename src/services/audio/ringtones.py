"""Named ringtone patterns."""

from pydantic import BaseModel, ConfigDict, Field


class ToneStep(BaseModel):
    """One step of a pattern. A frequency of 0 is silence."""
    model_config = ConfigDict(frozen=True)

    frequency_hz: float = Field(..., ge=0)
    duration_ms: int = Field(..., gt=0)

    @property
    def is_silence(self) -> bool:
        return self.frequency_hz == 0


def _pattern(*steps: tuple[float, int]) -> tuple[ToneStep, ...]:
    return tuple(ToneStep(frequency_hz=f, duration_ms=d) for f, d in steps)


RINGTONES: dict[str, tuple[ToneStep, ...]] = {
    "Default Beep": _pattern((880, 100), (0, 100), (880, 100)),
    "High-Low": _pattern((1200, 150), (600, 150)),
    "Intercom": _pattern((1046.50, 200), (0, 50), (830.61, 200)),
    "None": (),
}


def pattern_duration_ms(pattern: tuple[ToneStep, ...]) -> int:
    return sum(step.duration_ms for step in pattern)
