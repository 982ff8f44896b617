"""Tests for the mutation gateway and its validator."""

from decimal import Decimal

import pytest

from src.models.audit import AuditEventType
from src.models.transaction import TransactionType
from src.sync import MutationGateway, create_task_channel, create_transaction_channel
from src.validation import MutationValidator
from tests.fakes import settle


@pytest.fixture
def tasks(store, audit_logger):
    return create_task_channel(store, audit_logger)


@pytest.fixture
def gateway(store, tasks, audit_logger, paths):
    gateway = MutationGateway(store, tasks, audit_logger, clock=lambda: 1_700_000_000_000)
    gateway.bind(paths)
    return gateway


class TestMutationValidator:
    """Tests for the client-side guards."""

    def test_task_text_is_trimmed(self):
        """Test that surrounding whitespace is removed."""
        result = MutationValidator().validate_task_text("  Buy milk  ")
        assert result.is_valid is True
        assert result.cleaned["text"] == "Buy milk"

    @pytest.mark.parametrize("text", ["", "   ", None, 42])
    def test_empty_task_text_rejected(self, text):
        """Test that blank or non-string text is rejected."""
        assert MutationValidator().validate_task_text(text).is_valid is False

    def test_transaction_cleaned_values(self):
        """Test normalization of a valid transaction."""
        result = MutationValidator().validate_transaction(" Lunch ", "12.50", " Cafe ", "expense")
        assert result.is_valid is True
        assert result.cleaned == {
            "description": "Lunch",
            "amount": Decimal("12.50"),
            "vendor": "Cafe",
            "type": TransactionType.EXPENSE,
        }

    @pytest.mark.parametrize("amount", [0, "-1", "abc", "", float("nan"), float("inf")])
    def test_bad_amounts_rejected(self, amount):
        """Test that amounts must be finite and positive."""
        result = MutationValidator().validate_transaction("Lunch", amount, "", "expense")
        assert result.is_valid is False
        assert result.issues[0].field == "amount"

    @pytest.mark.parametrize("amount", ["1e400", "1e-400"])
    def test_amounts_lost_as_float_rejected(self, amount):
        """Test that amounts which overflow or underflow a float are refused."""
        result = MutationValidator().validate_transaction("Lunch", amount, "", "expense")
        assert result.is_valid is False
        assert result.issues[0].issue_type == "out_of_range"

    @pytest.mark.parametrize("amount", [0.01, "0.01"])
    def test_smallest_cent_accepted(self, amount):
        """Test that one cent is a valid amount."""
        result = MutationValidator().validate_transaction("Gum", amount, "", "expense")
        assert result.is_valid is True
        assert result.cleaned["amount"] == Decimal("0.01")

    def test_unknown_type_rejected(self):
        """Test that only income and expense are accepted."""
        result = MutationValidator().validate_transaction("Gift", 5, "", "transfer")
        assert result.is_valid is False
        assert result.issues[0].field == "type"


class TestTaskMutations:
    """Tests for task add/toggle/delete."""

    async def test_add_task_writes_document(self, store, gateway, paths):
        """Test the stored shape of a new task."""
        assert await gateway.add_task("  Buy milk ") is True

        documents = store.list_documents(paths.tasks_collection)
        assert len(documents) == 1
        assert documents[0].data == {
            "text": "Buy milk",
            "completed": False,
            "createdAt": 1_700_000_000_000,
        }

    async def test_added_task_appears_only_via_snapshot(self, gateway, tasks, paths):
        """Test that there is no optimistic local copy."""
        tasks.open(paths.tasks_collection)
        await settle()

        await gateway.add_task("Buy milk")
        assert tasks.items == ()
        await settle()

        assert [t.text for t in tasks.items] == ["Buy milk"]

    async def test_empty_task_never_reaches_store(self, store, gateway, audit_logger):
        """Test that rejected input is not written."""
        assert await gateway.add_task("   ") is False
        assert store.writes == []
        assert gateway.last_rejection.first_message == "Task text cannot be empty"
        assert audit_logger.recent_events(event_type=AuditEventType.VALIDATION_REJECTED)

    async def test_toggle_flips_completed(self, store, gateway, tasks, paths):
        """Test toggling a synced task."""
        tasks.open(paths.tasks_collection)
        await gateway.add_task("Buy milk")
        await settle()
        task_id = tasks.items[0].id

        assert await gateway.toggle_task(task_id) is True
        await settle()
        assert tasks.items[0].completed is True

        assert await gateway.toggle_task(task_id) is True
        await settle()
        assert tasks.items[0].completed is False

    async def test_toggle_unknown_id_is_noop(self, store, gateway, tasks, paths):
        """Test that ids outside the synced set are ignored."""
        tasks.open(paths.tasks_collection)
        await settle()

        assert await gateway.toggle_task("missing") is False
        assert await gateway.delete_task("missing") is False
        assert store.writes == []

    async def test_toggle_of_remotely_deleted_task(self, store, gateway, tasks, paths):
        """Test that a task deleted elsewhere does not raise."""
        tasks.open(paths.tasks_collection)
        await gateway.add_task("Buy milk")
        await settle()
        task_id = tasks.items[0].id
        await store.delete_document(paths.task_document(task_id))

        # The channel has not seen the delete yet
        assert await gateway.toggle_task(task_id) is False

    async def test_delete_removes_task(self, store, gateway, tasks, paths):
        """Test deleting a synced task."""
        tasks.open(paths.tasks_collection)
        await gateway.add_task("Buy milk")
        await settle()

        assert await gateway.delete_task(tasks.items[0].id) is True
        await settle()

        assert tasks.items == ()

    async def test_write_failure_returns_false(self, store, gateway, audit_logger):
        """Test that store failures are logged, not raised."""
        store.fail_writes = True

        assert await gateway.add_task("Buy milk") is False
        assert audit_logger.recent_events(event_type=AuditEventType.WRITE_FAILED)

    async def test_unbound_gateway_writes_nothing(self, store, tasks, audit_logger):
        """Test that nothing is written before sign-in."""
        gateway = MutationGateway(store, tasks, audit_logger)

        assert await gateway.add_task("Buy milk") is False
        assert store.writes == []


class TestTransactionMutations:
    """Tests for adding transactions."""

    async def test_add_transaction_writes_document(self, store, gateway, paths):
        """Test the stored shape of a new transaction."""
        accepted = await gateway.add_transaction("Lunch", "12.50", " Cafe ", "expense")

        assert accepted is True
        documents = store.list_documents(paths.transactions_collection)
        assert documents[0].data == {
            "description": "Lunch",
            "amount": 12.5,
            "vendor": "Cafe",
            "type": "expense",
            "createdAt": 1_700_000_000_000,
        }

    async def test_defaults_to_expense(self, store, gateway, paths):
        """Test the default transaction type."""
        await gateway.add_transaction("Bus", 2)
        assert store.list_documents(paths.transactions_collection)[0].data["type"] == "expense"

    async def test_non_positive_amount_rejected(self, store, gateway):
        """Test that zero and negative amounts are never written."""
        assert await gateway.add_transaction("Refund", 0, "", TransactionType.INCOME) is False
        assert await gateway.add_transaction("Refund", -4, "", TransactionType.INCOME) is False
        assert store.writes == []

    async def test_empty_description_rejected(self, store, gateway):
        """Test that a description is required."""
        assert await gateway.add_transaction("  ", 10) is False
        assert store.writes == []

    @pytest.mark.parametrize("amount", [0.01, "0.01"])
    async def test_one_cent_round_trips(self, store, gateway, audit_logger, paths, amount):
        """Test that a one-cent expense is stored and shown."""
        transactions = create_transaction_channel(store, audit_logger)
        transactions.open(paths.transactions_collection)

        assert await gateway.add_transaction("Gum", amount) is True
        await settle()

        assert store.list_documents(paths.transactions_collection)[0].data["amount"] == 0.01
        assert [t.amount for t in transactions.items] == [Decimal("0.01")]

    @pytest.mark.parametrize("amount", ["1e400", "1e-400"])
    async def test_unstorable_amount_never_written(self, store, gateway, amount):
        """Test that amounts a float cannot hold never reach the store."""
        assert await gateway.add_transaction("Huge", amount) is False
        assert store.writes == []
        assert gateway.last_rejection.issues[0].field == "amount"
