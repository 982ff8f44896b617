"""
Alarm / Ringtone Player

Plays a named tone pattern on the audio output, optionally repeating it
while a condition holds.

CRITICAL: Only one pattern plays at a time and the output device is held
only while playing. `play()` always stops the current playback first, and
`stop()` releases the device synchronously so a new `play()` can reopen it
straight away.
"""

import asyncio
from typing import Callable, Mapping, Optional

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.services.audio import AudioOutputError, RINGTONES, ToneOutputInterface, ToneStep


RepeatCondition = Callable[[], bool]


class AlarmPlayer:
    """Pattern sequencer over a `ToneOutputInterface`."""

    def __init__(
        self,
        output_factory: Callable[[], ToneOutputInterface],
        patterns: Mapping[str, tuple[ToneStep, ...]] = RINGTONES,
        repeat_pause_ms: int = 500,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._output_factory = output_factory
        self._patterns = patterns
        self._repeat_pause = repeat_pause_ms / 1000
        self._audit = audit_logger or AuditLogger()
        self._output: Optional[ToneOutputInterface] = None
        self._task: Optional[asyncio.Task] = None
        self.current_pattern: Optional[str] = None

    @property
    def pattern_names(self) -> list[str]:
        return list(self._patterns)

    @property
    def is_playing(self) -> bool:
        return self._task is not None and not self._task.done()

    async def play(self, name: str, repeat_while: Optional[RepeatCondition] = None) -> bool:
        """
        Start playing pattern `name`.

        Args:
            name: Key in the pattern table
            repeat_while: Checked after every full pass; replay while it returns True

        Returns:
            True if playback started. Unknown or empty patterns and an
            unavailable output device return False.
        """
        self.stop()

        pattern = self._patterns.get(name, ())
        if not pattern:
            return False

        try:
            output = self._output_factory()
            output.open()
        except AudioOutputError as e:
            self._audit.log(AuditEventBuilder.audio_output_failed(str(e)))
            return False

        self._output = output
        self.current_pattern = name
        self._task = asyncio.get_running_loop().create_task(
            self._run(pattern, output, repeat_while)
        )
        self._audit.log(AuditEventBuilder.alarm_started(name, repeat_while is not None))
        return True

    def stop(self) -> None:
        """Silence immediately and cancel pending repeats. Safe to call when idle."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        if self._output is not None:
            self._release(self._output)
            self._audit.log(AuditEventBuilder.alarm_stopped())

    async def wait(self) -> None:
        """Wait for the current playback to end on its own or be stopped."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(
        self,
        pattern: tuple[ToneStep, ...],
        output: ToneOutputInterface,
        repeat_while: Optional[RepeatCondition],
    ) -> None:
        try:
            while True:
                for step in pattern:
                    output.set_frequency(step.frequency_hz)
                    await asyncio.sleep(step.duration_ms / 1000)
                output.set_frequency(0)
                if not self._should_repeat(repeat_while):
                    break
                await asyncio.sleep(self._repeat_pause)
        except AudioOutputError as e:
            self._audit.log(AuditEventBuilder.audio_output_failed(str(e)))
        finally:
            self._release(output)

    def _should_repeat(self, repeat_while: Optional[RepeatCondition]) -> bool:
        if repeat_while is None:
            return False
        try:
            return bool(repeat_while())
        except Exception as e:
            self._audit.log(AuditEventBuilder.system_error(
                error_type="alarm_repeat_condition",
                error_message=str(e),
            ))
            return False

    def _release(self, output: ToneOutputInterface) -> None:
        # A superseded run must not close the output of the one that replaced it
        if output is not self._output:
            return
        self._output = None
        self.current_pattern = None
        try:
            output.close()
        except AudioOutputError as e:
            self._audit.log(AuditEventBuilder.audio_output_failed(str(e)))
