"""
Row markup for the Streamlit shell.

User text (task text, descriptions, vendors, voice transcripts) is escaped
before it is placed in HTML passed with `unsafe_allow_html`.
"""

import html
from datetime import datetime

from src.models.audit import AuditEvent
from src.models.task import Task
from src.models.transaction import Transaction


def format_time(created_at: int) -> str:
    return datetime.fromtimestamp(created_at / 1000).strftime("%d %b %Y %H:%M")


def task_row_html(task: Task) -> str:
    css = "tracker-item tracker-done" if task.completed else "tracker-item"
    return f'<div class="{css}">{html.escape(task.text)}</div>'


def transaction_row_html(transaction: Transaction) -> str:
    sign = "+" if transaction.is_income else "-"
    return (
        f'<div class="tracker-item"><strong>{html.escape(transaction.description)}</strong> '
        f'<span class="tracker-sub">{html.escape(transaction.vendor_label)} · '
        f'{format_time(transaction.created_at)}</span>'
        f'<span style="float:right">{sign}${transaction.amount:,.2f}</span></div>'
    )


def failure_line(event: AuditEvent) -> str:
    """One bullet for the recent problems list, including the cause."""
    line = f"- `{event.event_type.value}` {event.description}"
    if event.error_message:
        line += f": {event.error_message}"
    if event.details:
        line += f" {event.details}"
    return line
