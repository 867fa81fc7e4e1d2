"""
Ledgerwise - Source Package

Reporting and alerting engine for a personal finance tracker: period
summaries with period-over-period deltas, and threshold alerts over
budgets, savings goals, subscriptions and recurring expenses.

DESIGN PRINCIPLES:
1. Pure engines, thin I/O shell
2. "Now" and the user id are always passed in, never looked up
3. Alerts are deduplicated before they are stored
4. Failures are logged, never shown as crashes
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerwise Team"
