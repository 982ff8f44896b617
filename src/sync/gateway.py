"""
Mutation Gateway

Validates and forwards every user mutation to the store:
- add_task(text)
- toggle_task(task_id) / delete_task(task_id)
- add_transaction(description, amount, vendor, transaction_type)

DESIGN DECISION: There is no local optimistic cache. An accepted mutation
becomes visible only when the store echoes it back in the next snapshot of
the relevant channel. The return value only says whether the write was
attempted and accepted, never what was created.

Rejected input never reaches the store. Write failures are logged and not
retried; callers should keep the user's form input when they get False.
"""

import time
from typing import Any, Callable, Optional

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.models.task import Task
from src.models.transaction import TransactionType
from src.models.validation import ValidationResult
from src.services.storage.interface import (
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
)
from src.sync.channel import CollectionChannel
from src.sync.paths import UserPaths
from src.validation import MutationValidator


def epoch_millis() -> int:
    return int(time.time() * 1000)


class MutationGateway:
    """Write path for tasks and transactions."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        tasks: CollectionChannel[Task],
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[MutationValidator] = None,
        clock: Callable[[], int] = epoch_millis,
    ):
        self._store = store
        self._tasks = tasks
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or MutationValidator()
        self._clock = clock
        self._paths: Optional[UserPaths] = None
        self.last_rejection: Optional[ValidationResult] = None

    @property
    def paths(self) -> Optional[UserPaths]:
        return self._paths

    def bind(self, paths: Optional[UserPaths]) -> None:
        """Point the gateway at a user's data (None disables all writes)."""
        self._paths = paths

    def _require_paths(self, operation: str) -> Optional[UserPaths]:
        if self._paths is None:
            self._audit.log(AuditEventBuilder.mutation_ignored(operation, "not signed in"))
        return self._paths

    def _reject(self, result: ValidationResult) -> bool:
        self.last_rejection = result
        self._audit.log(AuditEventBuilder.validation_rejected(
            result.operation,
            [issue.model_dump() for issue in result.issues],
        ))
        return False

    def _find_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self._tasks.items if task.id == task_id), None)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def add_task(self, text: Any) -> bool:
        """Create an incomplete task. Empty text is rejected."""
        result = self._validator.validate_task_text(text)
        if not result.is_valid:
            return self._reject(result)
        self.last_rejection = None

        paths = self._require_paths("add_task")
        if paths is None:
            return False

        document = {
            "text": result.cleaned["text"],
            "completed": False,
            "createdAt": self._clock(),
        }
        try:
            task_id = await self._store.add_document(paths.tasks_collection, document)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("add_task", paths.tasks_collection, str(e)))
            return False

        self._audit.log(AuditEventBuilder.task_added(task_id))
        return True

    async def toggle_task(self, task_id: str) -> bool:
        """Flip `completed`. Unknown ids are a no-op."""
        paths = self._require_paths("toggle_task")
        if paths is None:
            return False

        task = self._find_task(task_id)
        if task is None:
            self._audit.log(AuditEventBuilder.mutation_ignored("toggle_task", "task not found", task_id))
            return False

        completed = not task.completed
        path = paths.task_document(task_id)
        try:
            await self._store.update_document(path, {"completed": completed})
        except NotFoundError:
            # Deleted elsewhere in the meantime
            self._audit.log(AuditEventBuilder.mutation_ignored("toggle_task", "task was deleted", task_id))
            return False
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("toggle_task", path, str(e)))
            return False

        self._audit.log(AuditEventBuilder.task_toggled(task_id, completed))
        return True

    async def delete_task(self, task_id: str) -> bool:
        """Remove a task. Unknown ids are a no-op."""
        paths = self._require_paths("delete_task")
        if paths is None:
            return False

        if self._find_task(task_id) is None:
            self._audit.log(AuditEventBuilder.mutation_ignored("delete_task", "task not found", task_id))
            return False

        path = paths.task_document(task_id)
        try:
            await self._store.delete_document(path)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("delete_task", path, str(e)))
            return False

        self._audit.log(AuditEventBuilder.task_deleted(task_id))
        return True

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(
        self,
        description: Any,
        amount: Any,
        vendor: Any = "",
        transaction_type: Any = TransactionType.EXPENSE,
    ) -> bool:
        """
        Record an income or expense.

        `amount` may be a number or numeric string; it must be finite and
        greater than zero. `vendor` is trimmed and may be empty.
        """
        result = self._validator.validate_transaction(
            description, amount, vendor, transaction_type
        )
        if not result.is_valid:
            return self._reject(result)
        self.last_rejection = None

        paths = self._require_paths("add_transaction")
        if paths is None:
            return False

        cleaned = result.cleaned
        document = {
            "description": cleaned["description"],
            # Firestore has no decimal type
            "amount": float(cleaned["amount"]),
            "vendor": cleaned["vendor"],
            "type": cleaned["type"].value,
            "createdAt": self._clock(),
        }
        collection = paths.transactions_collection
        try:
            transaction_id = await self._store.add_document(collection, document)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.write_failed("add_transaction", collection, str(e)))
            return False

        self._audit.log(AuditEventBuilder.transaction_added(
            transaction_id,
            cleaned["type"].value,
            str(cleaned["amount"]),
        ))
        return True
