"""
Mutation Validation

DESIGN DECISION: Every create operation passes a client-side guard before a
write is attempted. A rejected mutation never reaches the store; the caller
gets the issues back so the shell can show an inline message or keep the
submit control disabled.

Checks:
- Task text must be non-empty after trimming
- Transaction description must be non-empty after trimming
- Transaction amount must parse to a finite number greater than zero that
  survives conversion to a float
- Transaction type must be income or expense
- Vendor is trimmed and may be empty

IMPORTANT: Validation never silently fixes bad input beyond trimming
whitespace.
"""

import math
from decimal import Decimal
from typing import Any

from src.models.transaction import TransactionType, parse_amount
from src.models.validation import ValidationIssue, ValidationResult


TASK_TEXT_MAX_LENGTH = 500
DESCRIPTION_MAX_LENGTH = 200
VENDOR_MAX_LENGTH = 200


def _storable(amount: Decimal) -> bool:
    """Amounts are stored as floats; they must stay finite and non-zero."""
    as_float = float(amount)
    return math.isfinite(as_float) and as_float > 0


class MutationValidator:
    """Validates user input for task and transaction creation."""

    def validate_task_text(self, text: Any) -> ValidationResult:
        issues = []
        cleaned = text.strip() if isinstance(text, str) else ""

        if not cleaned:
            issues.append(ValidationIssue(
                field="text",
                issue_type="missing",
                message="Task text cannot be empty",
                suggested_fix="Type what needs doing",
            ))
        elif len(cleaned) > TASK_TEXT_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="text",
                issue_type="too_long",
                message=f"Task text is longer than {TASK_TEXT_MAX_LENGTH} characters",
            ))

        return ValidationResult(
            operation="add_task",
            issues=issues,
            cleaned={"text": cleaned},
        )

    def validate_transaction(
        self,
        description: Any,
        amount: Any,
        vendor: Any,
        transaction_type: Any,
    ) -> ValidationResult:
        issues = []

        cleaned_description = description.strip() if isinstance(description, str) else ""
        if not cleaned_description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description cannot be empty",
            ))
        elif len(cleaned_description) > DESCRIPTION_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {DESCRIPTION_MAX_LENGTH} characters",
            ))

        parsed_amount = parse_amount(amount)
        if parsed_amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_finite",
                message="Amount must be a number",
                suggested_fix="Enter an amount such as 12.50",
            ))
        elif parsed_amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))
        elif not _storable(parsed_amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message="Amount is too large or too small to store",
            ))

        cleaned_vendor = vendor.strip() if isinstance(vendor, str) else ""
        if len(cleaned_vendor) > VENDOR_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="vendor",
                issue_type="too_long",
                message=f"Vendor is longer than {VENDOR_MAX_LENGTH} characters",
            ))

        try:
            parsed_type = TransactionType(transaction_type)
        except ValueError:
            parsed_type = None
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message="Type must be 'income' or 'expense'",
            ))

        return ValidationResult(
            operation="add_transaction",
            issues=issues,
            cleaned={
                "description": cleaned_description,
                "amount": parsed_amount,
                "vendor": cleaned_vendor,
                "type": parsed_type,
            },
        )
