"""
Derived View Engine

Recomputes the activity report whenever tasks, transactions or settings
change, and tells its listeners.

DESIGN DECISION: Full recomputation on every change. Collections are
bounded by one person's activity, so there is no memoization and no
incremental aggregation to get wrong.
"""

from typing import Callable, Optional

from src.audit import AuditLogger
from src.models.audit import AuditEventBuilder
from src.models.report import ActivityReport
from src.models.task import Task
from src.models.transaction import Transaction
from src.sync.channel import CollectionChannel
from src.sync.settings_store import SettingsStore
from src.views.reports import build_activity_report


ReportListener = Callable[[ActivityReport], None]


class DerivedViewEngine:
    """Keeps `report` in step with the synced state."""

    def __init__(
        self,
        tasks: CollectionChannel[Task],
        transactions: CollectionChannel[Transaction],
        settings: SettingsStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._tasks = tasks
        self._transactions = transactions
        self._settings = settings
        self._audit = audit_logger or AuditLogger()
        self._listeners: list[ReportListener] = []
        self.recomputations = 0
        self._report = ActivityReport.empty(settings.settings)
        self._removers = [
            tasks.add_listener(lambda _items: self.recompute()),
            transactions.add_listener(lambda _items: self.recompute()),
            settings.add_listener(lambda _settings: self.recompute()),
        ]
        self.recompute()

    @property
    def report(self) -> ActivityReport:
        return self._report

    def add_listener(self, listener: ReportListener) -> Callable[[], None]:
        """Call `listener(report)` after every recomputation. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def recompute(self) -> ActivityReport:
        self._report = build_activity_report(
            self._settings.settings,
            self._tasks.items,
            self._transactions.items,
        )
        self.recomputations += 1
        for listener in list(self._listeners):
            try:
                listener(self._report)
            except Exception as e:
                self._audit.log(AuditEventBuilder.system_error(
                    error_type="report_listener",
                    error_message=str(e),
                ))
        return self._report

    def detach(self) -> None:
        """Stop following the sources."""
        removers, self._removers = self._removers, []
        for remove in removers:
            remove()
