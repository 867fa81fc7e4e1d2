"""
Budget allocation helpers.

Budgets are funded from this month's income. These helpers report how much
of that income is already allocated and whether a new or edited budget
would push allocations past it.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from ledgerwise.analytics.aggregator import sum_by_type, transactions_in
from ledgerwise.analytics.periods import DateLike, range_for_period
from ledgerwise.models.finance import BudgetSnapshot, Transaction, TransactionType
from ledgerwise.models.summary import AllocationCheck, BudgetTotals, ReportingPeriod


def monthly_income(transactions: Iterable[Transaction], reference_date: DateLike) -> float:
    """Income recorded in the calendar month of `reference_date`."""
    month = range_for_period(ReportingPeriod.MONTH, reference_date)
    return sum_by_type(transactions_in(transactions, month), TransactionType.INCOME)


def budget_totals(
    budgets: Iterable[BudgetSnapshot],
    transactions: Iterable[Transaction],
    reference_date: DateLike,
) -> BudgetTotals:
    budgets = list(budgets)
    income = monthly_income(transactions, reference_date)

    expense_allocation = float(sum((b.allocated for b in budgets), Decimal("0")))
    savings_allocation = float(sum((b.savings_allocation for b in budgets), Decimal("0")))
    total_allocation = expense_allocation + savings_allocation
    remaining = income - total_allocation

    return BudgetTotals(
        monthly_income=income,
        total_expense_allocation=expense_allocation,
        total_savings_allocation=savings_allocation,
        total_allocation=total_allocation,
        total_expense_spent=float(sum((b.spent for b in budgets), Decimal("0"))),
        remaining_to_allocate=remaining,
        is_over_allocated=remaining < 0,
    )


def validate_allocation(
    budgets: Iterable[BudgetSnapshot],
    monthly_income_amount: float,
    expense_allocation: Decimal,
    savings_allocation: Decimal,
    exclude_budget_id: Optional[UUID] = None,
) -> AllocationCheck:
    """
    Check a proposed allocation against monthly income.

    Pass `exclude_budget_id` when editing, so the budget's old
    allocation is not counted twice.
    """
    committed = sum(
        (
            b.allocated + b.savings_allocation
            for b in budgets
            if b.id != exclude_budget_id
        ),
        Decimal("0"),
    )
    proposed = committed + Decimal(expense_allocation) + Decimal(savings_allocation)
    remaining = monthly_income_amount - float(proposed)

    return AllocationCheck(
        is_valid=remaining >= 0,
        remaining=remaining,
        exceeded_by=abs(remaining) if remaining < 0 else 0.0,
    )
