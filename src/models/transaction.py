"""Transaction (budget ledger entry) model."""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


UNCATEGORIZED_VENDOR = "Uncategorized"


class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "income"
    EXPENSE = "expense"


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a user- or store-supplied amount.

    Returns None for anything that is not a finite number. Booleans are
    rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


class Transaction(BaseModel):
    """
    A single income or expense entry.

    Transactions are immutable once created; there is no edit or delete path.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned document id"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount"
    )
    vendor: str = Field(
        default="",
        max_length=200,
        description="Vendor or income source (may be empty)"
    )
    transaction_type: TransactionType = Field(
        ...,
        alias="type",
        description="Income or expense"
    )
    created_at: int = Field(
        ...,
        alias="createdAt",
        ge=0,
        description="Creation time in epoch milliseconds"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        parsed = parse_amount(v)
        if parsed is None:
            raise ValueError("Amount must be a finite number")
        return parsed

    @field_validator("vendor", mode="before")
    @classmethod
    def none_vendor_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def vendor_label(self) -> str:
        """Vendor name used for reporting."""
        return self.vendor or UNCATEGORIZED_VENDOR

    @property
    def is_income(self) -> bool:
        return self.transaction_type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.transaction_type == TransactionType.EXPENSE

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Transaction":
        return cls.model_validate({**data, "id": document_id})

    def to_document(self) -> dict[str, Any]:
        # Firestore has no decimal type
        return {
            "description": self.description,
            "amount": float(self.amount),
            "vendor": self.vendor,
            "type": self.transaction_type.value,
            "createdAt": self.created_at,
        }


def order_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first."""
    return sorted(transactions, key=lambda t: -t.created_at)
