"""
Data Models Package

This package contains all Pydantic models used in the tracker.
All data flowing through the sync layer must conform to these schemas.
"""

from src.models.user_settings import (
    PRESENTATION_THEMES,
    AppMode,
    PresentationTheme,
    SettingsUpdate,
    Theme,
    UserSettings,
    merge_settings,
)
from src.models.task import Task, order_tasks
from src.models.transaction import (
    UNCATEGORIZED_VENDOR,
    Transaction,
    TransactionType,
    order_transactions,
    parse_amount,
)
from src.models.report import (
    ActivityReport,
    BudgetSummary,
    TaskSummary,
    VendorSpending,
)
from src.models.validation import ValidationIssue, ValidationResult
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Settings models
    "PRESENTATION_THEMES",
    "AppMode",
    "PresentationTheme",
    "SettingsUpdate",
    "Theme",
    "UserSettings",
    "merge_settings",
    # Task models
    "Task",
    "order_tasks",
    # Transaction models
    "UNCATEGORIZED_VENDOR",
    "Transaction",
    "TransactionType",
    "order_transactions",
    "parse_amount",
    # Report models
    "ActivityReport",
    "BudgetSummary",
    "TaskSummary",
    "VendorSpending",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
