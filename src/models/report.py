"""
Report Models

Derived, read-only aggregates computed from the synced collections.
They are rebuilt from scratch on every change and never persisted.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.user_settings import UserSettings


class BudgetSummary(BaseModel):
    """Income/expense totals. `balance == total_income - total_expenses`."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


class TaskSummary(BaseModel):
    """Task counts and completion rate (whole percent)."""
    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    completion_rate: int = Field(default=0, ge=0, le=100)


class VendorSpending(BaseModel):
    """Summed expenses for one vendor and its share of all expenses."""
    model_config = ConfigDict(frozen=True)

    vendor: str
    amount: Decimal
    percentage: Decimal = Field(
        default=Decimal("0"),
        description="100 * amount / total expenses, 0 when there are no expenses"
    )


class ActivityReport(BaseModel):
    """Everything the report screen shows."""
    model_config = ConfigDict(frozen=True)

    display_name: str = "User"
    email: str = ""
    tasks: TaskSummary = Field(default_factory=TaskSummary)
    budget: BudgetSummary = Field(default_factory=BudgetSummary)
    spending_by_vendor: list[VendorSpending] = Field(default_factory=list)

    @property
    def email_label(self) -> str:
        return self.email or "Not set"

    @classmethod
    def empty(cls, settings: UserSettings) -> "ActivityReport":
        return cls(display_name=settings.display_name, email=settings.email)
