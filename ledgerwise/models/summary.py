"""
Reporting Models

Output types of the analytics package: date windows, percentage changes
and the financial summary shown on the dashboard.

DESIGN DECISION: The summary mixes two kinds of figures.
Windowed figures (income, expenses, balance, contributions) depend on the
selected period. Point-in-time figures (savings, budget totals) describe
the state right now and ignore the period. They live in separate
sub-models so nobody mistakes one for the other.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReportingPeriod(str, Enum):
    """Named reporting cadences."""
    WEEK = "week"
    MONTH = "month"
    SEMESTER = "semester"
    YEAR = "year"


class DateRange(BaseModel):
    """
    An inclusive window of calendar days.

    `start` is midnight of the first day and `end` the last instant
    of the final day.
    """
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end < self.start:
            raise ValueError("Range end cannot be before start")
        return self


class ChangeType(str, Enum):
    """Qualitative direction of a period-over-period change."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class PercentChange(BaseModel):
    """Signed relative change between two periods."""
    model_config = ConfigDict(frozen=True)

    value: float
    text: str
    type: ChangeType


class PeriodTotals(BaseModel):
    """Windowed sums for one date range."""

    income: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0
    contributions: float = Field(
        default=0.0,
        description="Money added to savings goals inside the window"
    )


class PeriodChanges(BaseModel):
    """Current-vs-previous changes, one per windowed figure."""

    income: PercentChange
    expenses: PercentChange
    balance: PercentChange
    contributions: PercentChange


class PointInTimeTotals(BaseModel):
    """
    Figures computed over current state, NOT over the reporting window.
    """

    total_savings: float = Field(
        default=0.0,
        description="Sum of current_amount over active savings goals right now"
    )
    total_budget: float = Field(
        default=0.0,
        description="Sum of allocations over all budgets, regardless of period"
    )
    total_spent: float = Field(
        default=0.0,
        description="Sum of spent over all budgets, regardless of period"
    )


class FinancialSummary(BaseModel):
    """Dashboard summary for one reporting period."""

    current_range: DateRange
    previous_range: DateRange
    current: PeriodTotals
    previous: PeriodTotals
    changes: PeriodChanges
    point_in_time: PointInTimeTotals


class BudgetTotals(BaseModel):
    """Allocation totals across all budgets against this month's income."""

    monthly_income: float = 0.0
    total_expense_allocation: float = 0.0
    total_savings_allocation: float = 0.0
    total_allocation: float = 0.0
    total_expense_spent: float = 0.0
    remaining_to_allocate: float = 0.0
    is_over_allocated: bool = False


class AllocationCheck(BaseModel):
    """Result of checking a proposed budget allocation against income."""

    is_valid: bool
    remaining: float
    exceeded_by: float = 0.0
