"""
Data Models Package

This package contains all Pydantic models used in Ledgerwise.
All data flowing through the system must conform to these schemas.
"""

from ledgerwise.models.finance import (
    BillingFrequency,
    BudgetSnapshot,
    ContributionSource,
    FinanceSnapshot,
    GoalContribution,
    GoalStatus,
    NotificationSources,
    RecordStatus,
    SavingsGoal,
    Subscription,
    Transaction,
    TransactionType,
)
from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationPriority,
    NotificationType,
    PersistedNotification,
    ReferenceType,
)
from ledgerwise.models.summary import (
    AllocationCheck,
    BudgetTotals,
    ChangeType,
    DateRange,
    FinancialSummary,
    PercentChange,
    PeriodChanges,
    PeriodTotals,
    PointInTimeTotals,
    ReportingPeriod,
)
from ledgerwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance records
    "BillingFrequency",
    "BudgetSnapshot",
    "ContributionSource",
    "FinanceSnapshot",
    "GoalContribution",
    "GoalStatus",
    "NotificationSources",
    "RecordStatus",
    "SavingsGoal",
    "Subscription",
    "Transaction",
    "TransactionType",
    # Notifications
    "NotificationCandidate",
    "NotificationPriority",
    "NotificationType",
    "PersistedNotification",
    "ReferenceType",
    # Reporting
    "AllocationCheck",
    "BudgetTotals",
    "ChangeType",
    "DateRange",
    "FinancialSummary",
    "PercentChange",
    "PeriodChanges",
    "PeriodTotals",
    "PointInTimeTotals",
    "ReportingPeriod",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
