"""Tests for the audit logger and configuration."""

from uuid import uuid4

from src.audit import AuditLogger
from src.config import AppSettings, AudioSettings, FirebaseSettings
from src.models.audit import AuditEventBuilder, AuditEventType


class TestAuditLogger:
    """Tests for the in-memory audit history."""

    def test_correlation_id_applied(self):
        """Test that every event carries the session correlation id."""
        correlation_id = uuid4()
        logger = AuditLogger(correlation_id=correlation_id)

        event = logger.log(AuditEventBuilder.task_added("t1"))

        assert event.correlation_id == correlation_id

    def test_recent_events_newest_first(self):
        """Test history ordering and filtering."""
        logger = AuditLogger()
        logger.log(AuditEventBuilder.task_added("t1"))
        logger.log(AuditEventBuilder.task_deleted("t1"))
        logger.log(AuditEventBuilder.task_added("t2"))

        added = logger.recent_events(event_type=AuditEventType.TASK_ADDED)
        assert [e.entity_id for e in added] == ["t2", "t1"]
        assert logger.recent_events(limit=1)[0].entity_id == "t2"

    def test_history_is_bounded(self):
        """Test that old events are dropped."""
        logger = AuditLogger(history_size=2)
        for n in range(5):
            logger.log(AuditEventBuilder.task_added(f"t{n}"))
        assert [e.entity_id for e in logger.recent_events()] == ["t4", "t3"]

    def test_failures(self):
        """Test that only warning-or-worse events are failures."""
        logger = AuditLogger()
        logger.log(AuditEventBuilder.task_added("t1"))
        logger.log(AuditEventBuilder.write_failed("add_task", "p", "offline"))
        assert [e.event_type for e in logger.failures()] == [AuditEventType.WRITE_FAILED]


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_app_defaults(self, monkeypatch):
        """Test the application defaults."""
        for name in ("APP_ID", "STORAGE_BACKEND", "INITIAL_AUTH_TOKEN"):
            monkeypatch.delenv(name, raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.app_id == "default-app-id"
        assert settings.storage_backend == "firestore"
        assert settings.initial_auth_token is None

    def test_blank_token_is_none(self, monkeypatch):
        """Test that an empty token means anonymous sign-in."""
        monkeypatch.setenv("INITIAL_AUTH_TOKEN", "   ")
        assert AppSettings(_env_file=None).initial_auth_token is None

    def test_audio_defaults(self):
        """Test the alarm playback defaults."""
        settings = AudioSettings(_env_file=None)
        assert settings.repeat_pause_ms == 500
        assert settings.gain == 0.1

    def test_firebase_config_blob(self, monkeypatch):
        """Test that the web config JSON supplies key and project."""
        monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
        monkeypatch.setenv("FIREBASE_CONFIG", '{"apiKey": "k", "projectId": "p"}')
        settings = FirebaseSettings(_env_file=None)
        assert settings.web_api_key == "k"
        assert settings.project_id == "p"
