"""Tests for the collection sync channel and its subscriptions."""

import asyncio

from src.models.audit import AuditEventType
from src.services.storage import ListenerRegistration
from src.sync import UserPaths, create_task_channel, create_transaction_channel
from tests.fakes import FlakyDocumentStore, settle


class LeakyStore(FlakyDocumentStore):
    """Removing a listener does not stop deliveries that are already queued."""

    def listen_collection(self, collection_path, on_snapshot, on_error):
        super().listen_collection(collection_path, on_snapshot, on_error)
        return ListenerRegistration(lambda: None)


def task_doc(text, created_at, completed=False):
    return {"text": text, "completed": completed, "createdAt": created_at}


class TestSnapshots:
    """Tests for snapshot normalization and publication."""

    async def test_initial_snapshot_is_published(self, store, audit_logger, paths):
        """Test that existing documents arrive ordered after open."""
        await store.add_document(paths.tasks_collection, task_doc("old", 1))
        await store.add_document(paths.tasks_collection, task_doc("done", 3, completed=True))
        await store.add_document(paths.tasks_collection, task_doc("new", 2))
        channel = create_task_channel(store, audit_logger)

        subscription = channel.open(paths.tasks_collection)
        assert channel.loaded is False
        await settle()

        assert channel.loaded is True
        assert [t.text for t in channel.items] == ["new", "old", "done"]
        assert subscription.emissions == 1

    async def test_each_change_replaces_items(self, store, audit_logger, paths):
        """Test that every write produces one full snapshot."""
        channel = create_task_channel(store, audit_logger)
        seen = []
        channel.add_listener(seen.append)
        channel.open(paths.tasks_collection)
        await settle()

        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        await settle()
        await store.add_document(paths.tasks_collection, task_doc("b", 2))
        await settle()

        assert [len(items) for items in seen] == [0, 1, 2]
        assert [t.text for t in channel.items] == ["b", "a"]

    async def test_malformed_documents_skipped(self, store, audit_logger, paths):
        """Test that a bad document is dropped without blanking the rest."""
        await store.add_document(paths.transactions_collection, {
            "description": "Lunch", "amount": 12, "vendor": "Cafe", "type": "expense", "createdAt": 1,
        })
        await store.add_document(paths.transactions_collection, {
            "description": "Broken", "amount": -3, "type": "expense", "createdAt": 2,
        })
        await store.add_document(paths.transactions_collection, {
            "description": "Gift", "amount": 5, "type": "transfer", "createdAt": 3,
        })
        channel = create_transaction_channel(store, audit_logger)

        channel.open(paths.transactions_collection)
        await settle()

        assert [t.description for t in channel.items] == ["Lunch"]
        skipped = audit_logger.recent_events(event_type=AuditEventType.DOCUMENT_SKIPPED)
        assert len(skipped) == 2

    async def test_listener_errors_are_contained(self, store, audit_logger, paths):
        """Test that a failing listener does not break delivery to others."""
        channel = create_task_channel(store, audit_logger)
        seen = []

        def broken(items):
            raise RuntimeError("render failed")

        channel.add_listener(broken)
        channel.add_listener(seen.append)
        channel.open(paths.tasks_collection)
        await settle()

        assert seen == [()]
        assert audit_logger.recent_events(event_type=AuditEventType.SYSTEM_ERROR)


class TestSubscriptionLifecycle:
    """Tests for resubscription and cancellation."""

    async def test_reopen_closes_previous_subscription(self, store, audit_logger, paths):
        """Test that a channel never holds two live listeners."""
        channel = create_task_channel(store, audit_logger)
        first = channel.open(paths.tasks_collection)
        other = UserPaths(app_id="test-app", user_id="user-2")
        second = channel.open(other.tasks_collection)

        assert first.closed is True
        assert second.closed is False
        assert channel.active is second
        assert store.listener_count == 1

    async def test_resubscribe_yields_one_emission_per_change(self, store, audit_logger, paths):
        """Test that reopening does not double deliveries."""
        channel = create_task_channel(store, audit_logger)
        channel.open(paths.tasks_collection)
        subscription = channel.open(paths.tasks_collection)
        await settle()

        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        await settle()

        assert subscription.emissions == 2
        assert len(channel.items) == 1

    async def test_superseded_subscription_is_ignored(self, audit_logger, paths):
        """Test that late callbacks for an old path never reach the items."""
        store = LeakyStore()
        channel = create_task_channel(store, audit_logger)
        channel.open(paths.tasks_collection)
        other = UserPaths(app_id="test-app", user_id="user-2")
        channel.open(other.tasks_collection)
        await settle()

        await store.add_document(paths.tasks_collection, task_doc("not mine", 1))
        await settle()

        assert channel.items == ()

    async def test_unsubscribe_is_idempotent_and_synchronous(self, store, audit_logger, paths):
        """Test that nothing is delivered after unsubscribe returns."""
        channel = create_task_channel(store, audit_logger)
        subscription = channel.open(paths.tasks_collection)
        await settle()

        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        subscription.unsubscribe()
        subscription.unsubscribe()
        await settle()

        assert subscription.emissions == 1
        assert channel.items == ()
        assert channel.active is None
        assert store.listener_count == 0

    async def test_context_manager_unsubscribes(self, store, audit_logger, paths):
        """Test the async context manager form."""
        channel = create_task_channel(store, audit_logger)
        async with channel.open(paths.tasks_collection) as subscription:
            await settle()
        assert subscription.closed is True
        assert store.listener_count == 0

    async def test_async_iteration(self, store, audit_logger, paths):
        """Test consuming snapshots as an async stream."""
        channel = create_task_channel(store, audit_logger)
        subscription = channel.open(paths.tasks_collection)
        received = []

        async def consume():
            async for items in subscription:
                received.append(len(items))

        consumer = asyncio.create_task(consume())
        await settle()
        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        await settle()
        subscription.unsubscribe()
        await asyncio.wait_for(consumer, timeout=1)

        assert received == [0, 1]


class TestFailures:
    """Tests for subscription failure handling."""

    async def test_error_marks_stale_and_keeps_items(self, store, audit_logger, paths):
        """Test that a broken listener leaves the last known items."""
        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        channel = create_task_channel(store, audit_logger)
        channel.open(paths.tasks_collection)
        await settle()

        store.fail_listeners(paths.tasks_collection, RuntimeError("permission denied"))
        await settle()

        assert channel.stale is True
        assert len(channel.items) == 1
        assert audit_logger.recent_events(event_type=AuditEventType.SUBSCRIPTION_FAILED)

    async def test_listen_refused(self, store, audit_logger, paths):
        """Test that a refused registration returns a closed subscription."""
        store.fail_listen = True
        channel = create_task_channel(store, audit_logger)

        subscription = channel.open(paths.tasks_collection)

        assert subscription.closed is True
        assert channel.stale is True
        assert channel.active is None

    async def test_refused_reopen_keeps_last_known_items(self, store, audit_logger, paths):
        """Test that a refused re-registration on the same path freezes the view."""
        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        channel = create_task_channel(store, audit_logger)
        channel.open(paths.tasks_collection)
        await settle()

        store.fail_listen = True
        channel.open(paths.tasks_collection)

        assert channel.stale is True
        assert [t.text for t in channel.items] == ["a"]
        assert channel.loaded is True

    async def test_refused_open_of_other_path_clears_items(self, store, audit_logger, paths):
        """Test that another user's path never shows the previous items."""
        await store.add_document(paths.tasks_collection, task_doc("a", 1))
        channel = create_task_channel(store, audit_logger)
        channel.open(paths.tasks_collection)
        await settle()

        store.fail_listen = True
        channel.open(UserPaths(app_id="test-app", user_id="user-2").tasks_collection)

        assert channel.stale is True
        assert channel.items == ()
        assert channel.loaded is False
