"""
Period Aggregator

Turns a fetched ledger into the dashboard summary for one reporting period:
windowed income/expense/balance/contribution totals for the current and
previous window, their percentage changes, and a handful of point-in-time
totals that ignore the window.

The aggregator performs no I/O and mutates nothing it is given.
Calling it twice with the same inputs returns equal summaries.
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

from ledgerwise.analytics.changes import percent_change
from ledgerwise.analytics.periods import (
    DateLike,
    is_in_range,
    previous_custom_range,
    previous_range_for_period,
    range_for_period,
)
from ledgerwise.models.finance import (
    BudgetSnapshot,
    FinanceSnapshot,
    GoalContribution,
    GoalStatus,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from ledgerwise.models.summary import (
    DateRange,
    FinancialSummary,
    PeriodChanges,
    PeriodTotals,
    PointInTimeTotals,
    ReportingPeriod,
)


def _total(amounts: Iterable[Decimal]) -> float:
    return float(sum(amounts, Decimal("0")))


def resolve_windows(
    reference_date: DateLike,
    period: Union[ReportingPeriod, str, None] = None,
    window: Optional[DateRange] = None,
) -> tuple[DateRange, DateRange]:
    """
    (current, previous) windows for a period keyword or an explicit range.

    An explicit range wins over the keyword.
    """
    if window is not None:
        return window, previous_custom_range(window)
    period = period or ReportingPeriod.MONTH
    return (
        range_for_period(period, reference_date),
        previous_range_for_period(period, reference_date),
    )


def transactions_in(
    transactions: Iterable[Transaction],
    window: DateRange,
) -> list[Transaction]:
    return [t for t in transactions if is_in_range(t.date, window)]


def sum_by_type(transactions: Iterable[Transaction], kind: TransactionType) -> float:
    return _total(t.amount for t in transactions if t.type == kind)


def contributions_in(
    contributions: Iterable[GoalContribution],
    window: DateRange,
) -> float:
    """Money added to goals inside the window (withdrawals are not counted)."""
    return _total(
        c.added_amount
        for c in contributions
        if c.added_amount > 0 and is_in_range(c.recorded_at, window)
    )


def total_active_savings(goals: Iterable[SavingsGoal]) -> float:
    return _total(g.current_amount for g in goals if g.status == GoalStatus.ACTIVE)


def window_totals(snapshot: FinanceSnapshot, window: DateRange) -> PeriodTotals:
    """Windowed sums for one date range."""
    in_window = transactions_in(snapshot.transactions, window)
    income = sum_by_type(in_window, TransactionType.INCOME)
    expenses = sum_by_type(in_window, TransactionType.EXPENSE)
    return PeriodTotals(
        income=income,
        expenses=expenses,
        balance=income - expenses,
        contributions=contributions_in(snapshot.contributions, window),
    )


def point_in_time_totals(
    goals: Iterable[SavingsGoal],
    budgets: Iterable[BudgetSnapshot],
) -> PointInTimeTotals:
    budgets = list(budgets)
    return PointInTimeTotals(
        total_savings=total_active_savings(goals),
        total_budget=_total(b.allocated for b in budgets),
        total_spent=_total(b.spent for b in budgets),
    )


def compute_stats(
    snapshot: FinanceSnapshot,
    reference_date: DateLike,
    period: Union[ReportingPeriod, str, None] = None,
    window: Optional[DateRange] = None,
) -> FinancialSummary:
    """
    Build the financial summary for a period.

    Args:
        snapshot: Ledger, budgets, goals and contribution log, already fetched
        reference_date: The day the period is anchored to
        period: Period keyword (week/month/semester/year); month if omitted
        window: Explicit date range; takes precedence over `period`

    Returns:
        FinancialSummary with windowed totals for both windows, their
        changes, and point-in-time totals that ignore the window
    """
    current_range, previous_range = resolve_windows(reference_date, period, window)

    current = window_totals(snapshot, current_range)
    previous = window_totals(snapshot, previous_range)

    changes = PeriodChanges(
        income=percent_change(current.income, previous.income),
        expenses=percent_change(current.expenses, previous.expenses),
        balance=percent_change(current.balance, previous.balance),
        contributions=percent_change(current.contributions, previous.contributions),
    )

    return FinancialSummary(
        current_range=current_range,
        previous_range=previous_range,
        current=current,
        previous=previous,
        changes=changes,
        point_in_time=point_in_time_totals(snapshot.goals, snapshot.budgets),
    )
