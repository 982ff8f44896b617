"""Derived views over the synced collections."""

from src.views.engine import DerivedViewEngine
from src.views.markup import failure_line, format_time, task_row_html, transaction_row_html
from src.views.reports import (
    budget_summary,
    build_activity_report,
    completion_rate,
    spending_by_vendor,
    task_summary,
)

__all__ = [
    "DerivedViewEngine",
    "budget_summary",
    "build_activity_report",
    "completion_rate",
    "failure_line",
    "format_time",
    "spending_by_vendor",
    "task_summary",
    "task_row_html",
    "transaction_row_html",
]
