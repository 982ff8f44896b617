"""
Report Computations

Pure functions over the synced collections. Nothing here is cached or
updated incrementally; every caller gets a full recomputation from the
sequences it passes in.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from src.models.report import ActivityReport, BudgetSummary, TaskSummary, VendorSpending
from src.models.task import Task
from src.models.transaction import Transaction
from src.models.user_settings import UserSettings


ZERO = Decimal("0")


def budget_summary(transactions: Iterable[Transaction]) -> BudgetSummary:
    """Income, expense and balance totals."""
    income = ZERO
    expenses = ZERO
    for transaction in transactions:
        if transaction.is_income:
            income += transaction.amount
        else:
            expenses += transaction.amount
    return BudgetSummary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
    )


def completion_rate(completed: int, total: int) -> int:
    """Whole-percent completion, rounding halves up. 0 when there are no tasks."""
    if total <= 0:
        return 0
    rate = Decimal(100 * completed) / Decimal(total)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def task_summary(tasks: Sequence[Task]) -> TaskSummary:
    total = len(tasks)
    completed = sum(1 for task in tasks if task.completed)
    return TaskSummary(
        total=total,
        completed=completed,
        pending=total - completed,
        completion_rate=completion_rate(completed, total),
    )


def spending_by_vendor(transactions: Iterable[Transaction]) -> list[VendorSpending]:
    """
    Expenses grouped by vendor label, largest first.

    Groups with equal totals keep the order in which their vendor was first
    seen. Empty vendors are grouped as "Uncategorized".
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if not transaction.is_expense:
            continue
        label = transaction.vendor_label
        totals[label] = totals.get(label, ZERO) + transaction.amount

    grand_total = sum(totals.values(), ZERO)
    # sorted() is stable, so ties stay in insertion order
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        VendorSpending(
            vendor=vendor,
            amount=amount,
            percentage=(amount * 100 / grand_total) if grand_total > 0 else ZERO,
        )
        for vendor, amount in ranked
    ]


def build_activity_report(
    settings: UserSettings,
    tasks: Sequence[Task],
    transactions: Sequence[Transaction],
) -> ActivityReport:
    """Profile, task and budget figures for the report screen."""
    return ActivityReport(
        display_name=settings.display_name,
        email=settings.email,
        tasks=task_summary(tasks),
        budget=budget_summary(transactions),
        spending_by_vendor=spending_by_vendor(transactions),
    )
