"""Tests for the alarm/ringtone player."""

import asyncio

from src.models.audit import AuditEventType
from src.services.audio import RINGTONES, ToneStep, pattern_duration_ms
from src.sync import AlarmPlayer
from tests.fakes import ToneOutputFactory


def step(frequency_hz, duration_ms):
    return ToneStep(frequency_hz=frequency_hz, duration_ms=duration_ms)


PATTERNS = {
    "Beep": (step(880, 5), step(0, 5), step(440, 5)),
    "Long": (step(600, 10_000),),
    "Empty": (),
}


def make_player(factory, audit_logger):
    return AlarmPlayer(factory, patterns=PATTERNS, repeat_pause_ms=5, audit_logger=audit_logger)


class TestRingtoneTable:
    """Tests for the built-in patterns."""

    def test_builtin_patterns(self):
        """Test the named patterns and their steps."""
        assert set(RINGTONES) == {"Default Beep", "High-Low", "Intercom", "None"}
        assert [(s.frequency_hz, s.duration_ms) for s in RINGTONES["Default Beep"]] == [
            (880, 100), (0, 100), (880, 100),
        ]
        assert RINGTONES["None"] == ()
        assert pattern_duration_ms(RINGTONES["Intercom"]) == 450

    def test_silence_step(self):
        """Test that frequency 0 is silence."""
        assert step(0, 50).is_silence is True
        assert step(440, 50).is_silence is False


class TestPlayback:
    """Tests for play/stop."""

    async def test_plays_steps_in_order_then_releases(self, audit_logger):
        """Test a single pass of a pattern."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)

        assert await player.play("Beep") is True
        await player.wait()

        output = factory.outputs[0]
        assert output.frequencies == [880, 0, 440, 0]
        assert output.closed is True
        assert player.is_playing is False

    async def test_repeats_while_condition_holds(self, audit_logger):
        """Test that the pattern replays until the flag drops."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)
        passes = []

        def armed():
            passes.append(1)
            return len(passes) < 3

        await player.play("Beep", repeat_while=armed)
        await player.wait()

        assert len(passes) == 3
        assert factory.outputs[0].frequencies == [880, 0, 440, 0] * 3

    async def test_stop_silences_and_releases_immediately(self, audit_logger):
        """Test that stop ends playback synchronously."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)
        await player.play("Long", repeat_while=lambda: True)
        await asyncio.sleep(0)

        player.stop()

        output = factory.outputs[0]
        assert output.closed is True
        assert player.is_playing is False
        await asyncio.sleep(0)
        assert audit_logger.recent_events(event_type=AuditEventType.ALARM_STOPPED)

    async def test_stop_is_idempotent(self, audit_logger):
        """Test that stopping when idle is a no-op."""
        player = make_player(ToneOutputFactory(), audit_logger)
        player.stop()
        player.stop()
        assert player.is_playing is False

    async def test_play_replaces_current_playback(self, audit_logger):
        """Test that only one pattern plays at a time."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)
        await player.play("Long")
        await asyncio.sleep(0)

        await player.play("Beep")
        await player.wait()

        first, second = factory.outputs
        assert first.closed is True
        assert second.frequencies == [880, 0, 440, 0]
        assert second.closed is True

    async def test_unknown_and_empty_patterns_play_nothing(self, audit_logger):
        """Test that nothing is opened for missing or empty patterns."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)

        assert await player.play("Empty") is False
        assert await player.play("Siren") is False
        assert factory.outputs == []

    async def test_unavailable_output(self, audit_logger):
        """Test that a missing audio device is reported, not raised."""
        player = make_player(ToneOutputFactory(fail_open=True), audit_logger)

        assert await player.play("Beep") is False
        assert player.is_playing is False
        assert audit_logger.recent_events(event_type=AuditEventType.AUDIO_OUTPUT_FAILED)

    async def test_failing_repeat_condition_stops_playback(self, audit_logger):
        """Test that an error in the repeat check is logged and ends the alarm."""
        factory = ToneOutputFactory()
        player = make_player(factory, audit_logger)

        def broken():
            raise RuntimeError("session gone")

        await player.play("Beep", repeat_while=broken)
        await player.wait()

        output = factory.outputs[0]
        assert output.frequencies == [880, 0, 440, 0]
        assert output.closed is True
        assert player.is_playing is False
        errors = audit_logger.recent_events(event_type=AuditEventType.SYSTEM_ERROR)
        assert errors[0].error_message == "session gone"
