"""Tests for the settings store."""

from src.models.audit import AuditEventType
from src.models.user_settings import AppMode, SettingsUpdate, Theme, UserSettings
from src.sync import BackgroundTasks, SettingsStore, UserPaths
from tests.fakes import settle


class TestDefaults:
    """Tests for first-use default creation."""

    async def test_missing_document_is_seeded_once(self, store, audit_logger, paths):
        """Test that a new user gets exactly one default document."""
        background = BackgroundTasks()
        settings = SettingsStore(store, audit_logger, background)

        settings.load(paths.user_id, paths.settings_document)
        await settle()
        await background.drain()

        assert store.get_document(paths.settings_document) == UserSettings().to_document()
        assert [w[0] for w in store.writes] == ["create"]
        assert settings.loaded is True

    async def test_existing_document_is_never_overwritten(self, store, audit_logger, paths):
        """Test that remote settings win over defaults."""
        await store.set_document(paths.settings_document, {
            "theme": "light", "displayName": "Asha", "appMode": "budget", "email": "",
        })
        store.writes.clear()
        settings = SettingsStore(store, audit_logger)

        settings.load(paths.user_id, paths.settings_document)
        await settle()

        assert store.writes == []
        assert settings.settings.theme == Theme.LIGHT
        assert settings.settings.display_name == "Asha"
        assert settings.settings.app_mode == AppMode.BUDGET

    async def test_seed_never_replaces_a_concurrently_created_document(self, store, audit_logger, paths):
        """Test that a profile written by another client before the seed runs is kept."""
        background = BackgroundTasks()
        settings = SettingsStore(store, audit_logger, background)
        settings.load(paths.user_id, paths.settings_document)
        await settle(1)

        remote = {"theme": "light", "displayName": "Asha", "appMode": "budget", "email": "a@example.com"}
        await store.set_document(paths.settings_document, remote)
        await background.drain()
        await settle()

        assert store.get_document(paths.settings_document) == remote
        assert settings.settings.display_name == "Asha"
        assert not audit_logger.recent_events(event_type=AuditEventType.WRITE_FAILED)
        assert not audit_logger.recent_events(event_type=AuditEventType.SETTINGS_DEFAULTS_CREATED)

    async def test_reload_same_user_does_not_reseed(self, store, audit_logger, paths):
        """Test that defaults are written at most once per user."""
        background = BackgroundTasks()
        settings = SettingsStore(store, audit_logger, background)
        settings.load(paths.user_id, paths.settings_document)
        await settle()
        await background.drain()
        await store.delete_document(paths.settings_document)
        store.writes.clear()

        settings.load(paths.user_id, paths.settings_document)
        await settle()
        await background.drain()

        assert store.writes == []

    async def test_partial_remote_document_keeps_local_fields(self, store, audit_logger, paths):
        """Test that fields missing remotely fall back to local values."""
        await store.set_document(paths.settings_document, {"theme": "light"})
        settings = SettingsStore(store, audit_logger)

        settings.load(paths.user_id, paths.settings_document)
        await settle()

        assert settings.settings.theme == Theme.LIGHT
        assert settings.settings.display_name == "User"

    async def test_user_switch_resets_to_defaults(self, store, audit_logger, paths):
        """Test that one user's settings are never shown for another."""
        await store.set_document(paths.settings_document, {
            "theme": "light", "displayName": "Asha", "appMode": "tasks", "email": "",
        })
        settings = SettingsStore(store, audit_logger)
        settings.load(paths.user_id, paths.settings_document)
        await settle()
        other = UserPaths(app_id="test-app", user_id="user-2")

        settings.load(other.user_id, other.settings_document)

        assert settings.settings == UserSettings()
        assert settings.user_id == "user-2"


class TestSave:
    """Tests for merge saves."""

    async def test_save_merges_only_given_fields(self, store, audit_logger, paths):
        """Test that a save writes just the changed fields."""
        await store.set_document(paths.settings_document, UserSettings().to_document())
        store.writes.clear()
        settings = SettingsStore(store, audit_logger)
        settings.load(paths.user_id, paths.settings_document)
        await settle()

        saved = await settings.save(SettingsUpdate(app_mode=AppMode.BUDGET))
        await settle()

        assert saved is True
        assert store.writes == [("set_merge", paths.settings_document, {"appMode": "budget"})]
        assert store.get_document(paths.settings_document)["appMode"] == "budget"
        assert store.get_document(paths.settings_document)["displayName"] == "User"

    async def test_save_is_optimistic(self, store, audit_logger, paths):
        """Test that listeners see the change before the write completes."""
        settings = SettingsStore(store, audit_logger)
        settings.load(paths.user_id, paths.settings_document)
        await settle()
        seen = []
        settings.add_listener(seen.append)

        await settings.save({"displayName": "Asha"})

        assert seen[0].display_name == "Asha"

    async def test_failed_write_keeps_local_state(self, store, audit_logger, paths):
        """Test that a failed save is logged and not rolled back."""
        settings = SettingsStore(store, audit_logger)
        settings.load(paths.user_id, paths.settings_document)
        await settle()
        store.fail_writes = True

        saved = await settings.save(SettingsUpdate(theme=Theme.LIGHT))

        assert saved is False
        assert settings.settings.theme == Theme.LIGHT
        assert audit_logger.recent_events(event_type=AuditEventType.WRITE_FAILED)

    async def test_save_without_user_is_ignored(self, store, audit_logger):
        """Test that saving before load writes nothing."""
        settings = SettingsStore(store, audit_logger)

        saved = await settings.save(SettingsUpdate(theme=Theme.LIGHT))

        assert saved is False
        assert store.writes == []
        assert settings.settings.theme == Theme.DARK

    async def test_empty_update_is_ignored(self, store, audit_logger, paths):
        """Test that an update with no fields writes nothing."""
        settings = SettingsStore(store, audit_logger)
        settings.load(paths.user_id, paths.settings_document)
        await settle()
        store.writes.clear()

        assert await settings.save(SettingsUpdate()) is False
        assert store.writes == []

    async def test_early_save_survives_default_seeding(self, store, audit_logger, paths):
        """Test that seeding does not clobber a save made before it ran."""
        background = BackgroundTasks()
        settings = SettingsStore(store, audit_logger, background)
        settings.load(paths.user_id, paths.settings_document)
        await settle(1)

        await settings.save(SettingsUpdate(display_name="Asha"))
        await settle()
        await background.drain()
        await settle()

        assert store.get_document(paths.settings_document)["displayName"] == "Asha"
        assert settings.settings.display_name == "Asha"
