"""Notification rules, deduplication, evaluation pipeline and inbox."""

from ledgerwise.notifications.evaluator import NotificationRuleEvaluator, default_rules
from ledgerwise.notifications.inbox import NotificationInbox
from ledgerwise.notifications.pipeline import NotificationPipeline, NotificationScheduler
from ledgerwise.notifications.rules import (
    BudgetWarningRule,
    GoalAtRiskRule,
    GoalProgressRule,
    NotificationRule,
    RecurringExpenseDueRule,
    SubscriptionReminderRule,
)
from ledgerwise.notifications.sink import NotificationSink

__all__ = [
    "BudgetWarningRule",
    "GoalAtRiskRule",
    "GoalProgressRule",
    "NotificationInbox",
    "NotificationPipeline",
    "NotificationRule",
    "NotificationRuleEvaluator",
    "NotificationScheduler",
    "NotificationSink",
    "RecurringExpenseDueRule",
    "SubscriptionReminderRule",
    "default_rules",
]
