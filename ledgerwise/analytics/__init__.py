"""Reporting periods, percentage changes and period aggregation."""

from ledgerwise.analytics.aggregator import compute_stats, resolve_windows
from ledgerwise.analytics.budgets import budget_totals, monthly_income, validate_allocation
from ledgerwise.analytics.changes import percent_change
from ledgerwise.analytics.periods import (
    custom_range,
    format_date_range,
    is_in_range,
    previous_custom_range,
    previous_range_for_period,
    range_for_period,
)

__all__ = [
    "budget_totals",
    "compute_stats",
    "custom_range",
    "format_date_range",
    "is_in_range",
    "monthly_income",
    "percent_change",
    "previous_custom_range",
    "previous_range_for_period",
    "range_for_period",
    "resolve_windows",
    "validate_allocation",
]
