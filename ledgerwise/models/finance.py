"""
Finance Record Models for Ledgerwise

These models define the records the analytics and notification engines read:
transactions, budgets, savings goals, goal contributions and subscriptions.

DESIGN DECISION: Records are validated once, at the model boundary.
The engines downstream assume clean data and never re-check amounts.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class RecordStatus(str, Enum):
    """
    Lifecycle status for recurring records (subscriptions, recurring expenses).

    Only ACTIVE records take part in reminders.
    """
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class GoalStatus(str, Enum):
    """Savings goal status."""
    ACTIVE = "active"
    COMPLETED = "completed"


class ContributionSource(str, Enum):
    """Who added money to a savings goal."""
    USER = "user"
    AI = "ai"


class BillingFrequency(str, Enum):
    """Subscription billing cadence."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# LEDGER
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    ``date`` is a calendar day; time of day carries no meaning.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount; direction comes from `type`"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category key"
    )
    description: str = Field(default="", max_length=500)
    date: date
    is_recurring: bool = False
    status: RecordStatus = RecordStatus.ACTIVE
    budget_id: Optional[UUID] = None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


# =============================================================================
# BUDGETS AND GOALS
# =============================================================================

class BudgetSnapshot(BaseModel):
    """
    Current state of one budget.

    CRITICAL: `spent` is maintained by the storage layer as transactions
    are recorded. This package only reads it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Budget name / category key"
    )
    allocated: Decimal = Field(
        ...,
        ge=0,
        description="Expense allocation for the budget period"
    )
    spent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Expenses recorded against the budget so far"
    )
    savings_allocation: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount set aside for savings from this budget"
    )
    linked_savings_goal_id: Optional[UUID] = None

    @property
    def percent_spent(self) -> Optional[float]:
        """Share of the allocation spent, or None when nothing is allocated."""
        if self.allocated == 0:
            return None
        return float(self.spent) / float(self.allocated) * 100


class SavingsGoal(BaseModel):
    """A savings target and the running total saved towards it."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE

    @property
    def percent_complete(self) -> float:
        return float(self.current_amount) / float(self.target_amount) * 100

    @property
    def remaining_amount(self) -> Decimal:
        return self.target_amount - self.current_amount


class GoalContribution(BaseModel):
    """
    One entry in the append-only contribution log.

    The goal's `current_amount` is the running sum of these, kept
    up to date by the storage layer.
    """

    goal_id: UUID
    added_amount: Decimal = Field(..., ge=0)
    added_by: ContributionSource = ContributionSource.USER
    recorded_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

class Subscription(BaseModel):
    """A tracked recurring subscription."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    frequency: BillingFrequency = BillingFrequency.MONTHLY
    next_billing_date: Optional[date] = None
    reminder_date: Optional[date] = None
    reminder_note: Optional[str] = Field(default=None, max_length=500)
    status: RecordStatus = RecordStatus.ACTIVE


# =============================================================================
# INPUT BUNDLES
# =============================================================================

class FinanceSnapshot(BaseModel):
    """
    Everything the period aggregator needs, already fetched.

    Missing collections are simply empty.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[BudgetSnapshot] = Field(default_factory=list)
    goals: list[SavingsGoal] = Field(default_factory=list)
    contributions: list[GoalContribution] = Field(default_factory=list)


class NotificationSources(BaseModel):
    """
    Current records the notification rules inspect.

    A collection that could not be fetched is left empty; rules never
    distinguish "failed to load" from "nothing there".
    """

    subscriptions: list[Subscription] = Field(default_factory=list)
    budgets: list[BudgetSnapshot] = Field(default_factory=list)
    goals: list[SavingsGoal] = Field(default_factory=list)
    recurring_expenses: list[Transaction] = Field(default_factory=list)
