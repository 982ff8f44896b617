"""Tests for the shell's row markup."""

from decimal import Decimal

from src.models.audit import AuditEventBuilder
from src.models.task import Task
from src.models.transaction import Transaction, TransactionType
from src.views import failure_line, task_row_html, transaction_row_html


class TestRowMarkup:
    """Tests that user text is escaped before it reaches the page."""

    def test_task_text_is_escaped(self):
        """Test that HTML in a task name is shown as text."""
        task = Task(id="t1", text='<img src=x onerror="alert(1)">', completed=False, created_at=1)

        markup = task_row_html(task)

        assert "<img" not in markup
        assert "&lt;img src=x onerror=&quot;alert(1)&quot;&gt;" in markup
        assert markup.startswith('<div class="tracker-item">')

    def test_completed_task_style(self):
        """Test the completed row class."""
        task = Task(id="t1", text="Done", completed=True, created_at=1)
        assert 'class="tracker-item tracker-done"' in task_row_html(task)

    def test_transaction_fields_are_escaped(self):
        """Test that description and vendor are escaped."""
        transaction = Transaction(
            id="x1", description="<b>Rent</b>", amount=Decimal("400"),
            vendor="<script>x</script>", transaction_type=TransactionType.EXPENSE,
            created_at=1_700_000_000_000,
        )

        markup = transaction_row_html(transaction)

        assert "<b>" not in markup
        assert "<script>" not in markup
        assert "&lt;b&gt;Rent&lt;/b&gt;" in markup
        assert "-$400.00" in markup


class TestFailureLine:
    """Tests for the recent problems list."""

    def test_includes_error_message(self):
        """Test that the cause of a failed write is shown."""
        event = AuditEventBuilder.write_failed("add_task", "artifacts/a/users/u/tasks", "permission denied")

        line = failure_line(event)

        assert line.startswith("- `write_failed`")
        assert "permission denied" in line
