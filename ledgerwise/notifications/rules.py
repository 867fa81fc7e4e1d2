"""
Notification Rules

Each rule is a stateless check over one kind of record. Given the record
and today's date it either returns a candidate alert or None. Rules know
nothing about each other: several may fire for the same record on the
same pass, and arbitration is left to the dedup stage.

Thresholds are constructor arguments so they can come from settings;
the defaults match NotificationSettings.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Generic, Iterable, Optional, TypeVar

import structlog

from ledgerwise.models.finance import (
    BudgetSnapshot,
    GoalStatus,
    NotificationSources,
    RecordStatus,
    SavingsGoal,
    Subscription,
    Transaction,
)
from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationPriority,
    NotificationType,
    ReferenceType,
)

RecordT = TypeVar("RecordT")

logger = structlog.get_logger(__name__)

# Longest record name shown in an alert title
TITLE_NAME_LENGTH = 120


def days_until(target: date, today: date) -> int:
    """Whole days from `today` to `target`; negative when in the past."""
    return (target - today).days


def short_name(text: str, limit: int = TITLE_NAME_LENGTH) -> str:
    """`text` cut to `limit` characters, marked with an ellipsis when cut."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


class NotificationRule(ABC, Generic[RecordT]):
    """
    One independent alert rule.

    Subclasses pick their records out of NotificationSources and decide,
    record by record, whether to alert.
    """

    name: str = "rule"

    @abstractmethod
    def records(self, sources: NotificationSources) -> Iterable[RecordT]:
        """The records this rule inspects."""

    @abstractmethod
    def check(self, record: RecordT, today: date) -> Optional[NotificationCandidate]:
        """Candidate for one record, or None when the rule does not fire."""

    def evaluate(self, sources: NotificationSources, today: date) -> list[NotificationCandidate]:
        """Candidates for every record; a record whose check fails is logged and skipped."""
        candidates = []
        for record in self.records(sources):
            try:
                candidate = self.check(record, today)
            except Exception as e:
                logger.warning(
                    "rule_check_failed",
                    rule=self.name,
                    record_id=str(getattr(record, "id", "")),
                    error=str(e)[:200],
                )
                continue
            if candidate is not None:
                candidates.append(candidate)
        return candidates


class SubscriptionReminderRule(NotificationRule[Subscription]):
    """Active subscriptions whose reminder date is close, today or past."""

    name = "subscription_reminder"

    def __init__(self, lookahead_days: int = 3):
        self.lookahead_days = lookahead_days

    def records(self, sources: NotificationSources) -> Iterable[Subscription]:
        return sources.subscriptions

    def check(self, record: Subscription, today: date) -> Optional[NotificationCandidate]:
        if record.status != RecordStatus.ACTIVE or record.reminder_date is None:
            return None

        days = days_until(record.reminder_date, today)
        if days > self.lookahead_days:
            return None

        name = short_name(record.name)
        if days < 0:
            title = f"⚠️ Overdue: {name} reminder"
        elif days == 0:
            title = f"🔔 Today: {name} reminder"
        else:
            title = f"🔔 {name} reminder in {days} days"

        message = record.reminder_note or (
            f"Reminder for {record.name} subscription "
            f"(${record.amount}/{record.frequency.value})"
        )

        return NotificationCandidate(
            type=NotificationType.SUBSCRIPTION_REMINDER,
            title=title,
            message=message,
            reference_id=record.id,
            reference_type=ReferenceType.SUBSCRIPTION,
            priority=NotificationPriority.HIGH if days <= 0 else NotificationPriority.NORMAL,
            link_path="/subscriptions",
            link_label="View Subscriptions",
        )


class BudgetWarningRule(NotificationRule[BudgetSnapshot]):
    """
    Budgets that are nearly or fully spent.

    Exceeded and approaching are exclusive: a budget at or over 100%
    only gets the exceeded alert.
    """

    name = "budget_warning"

    def __init__(self, warning_percent: float = 80.0):
        self.warning_percent = warning_percent

    def records(self, sources: NotificationSources) -> Iterable[BudgetSnapshot]:
        return sources.budgets

    def check(self, record: BudgetSnapshot, today: date) -> Optional[NotificationCandidate]:
        percent = record.percent_spent
        if percent is None:
            return None

        allocated = float(record.allocated)
        spent = float(record.spent)

        if percent >= 100:
            return NotificationCandidate(
                type=NotificationType.BUDGET_WARNING,
                title=f"🚨 {short_name(record.category)} budget exceeded!",
                message=f"You've spent ${spent:.0f} of ${allocated:.0f} ({percent:.0f}%)",
                reference_id=record.id,
                reference_type=ReferenceType.BUDGET,
                priority=NotificationPriority.URGENT,
                link_path="/budget",
                link_label="View Budget",
            )
        if percent >= self.warning_percent:
            return NotificationCandidate(
                type=NotificationType.BUDGET_WARNING,
                title=f"⚠️ {short_name(record.category)} at {percent:.0f}%",
                message=f"Only ${allocated - spent:.0f} remaining in this budget",
                reference_id=record.id,
                reference_type=ReferenceType.BUDGET,
                priority=NotificationPriority.HIGH,
                link_path="/budget",
                link_label="View Budget",
            )
        return None


class GoalProgressRule(NotificationRule[SavingsGoal]):
    """
    Achievement and milestone alerts for active goals.

    Tiers are checked most advanced first and at most one fires per goal.
    """

    name = "goal_progress"

    def records(self, sources: NotificationSources) -> Iterable[SavingsGoal]:
        return [g for g in sources.goals if g.status == GoalStatus.ACTIVE]

    def check(self, record: SavingsGoal, today: date) -> Optional[NotificationCandidate]:
        percent = record.percent_complete
        remaining = float(record.remaining_amount)

        if percent >= 100:
            return NotificationCandidate(
                type=NotificationType.GOAL_ACHIEVED,
                title=f"🎉 {short_name(record.name)} achieved!",
                message=(
                    "Congratulations! You've reached your savings goal of "
                    f"${float(record.target_amount):.0f}"
                ),
                reference_id=record.id,
                reference_type=ReferenceType.GOAL,
                priority=NotificationPriority.HIGH,
                link_path="/goals",
                link_label="View Goals",
            )
        if percent >= 90:
            return self._milestone(
                record,
                title=f"🎯 {short_name(record.name)} at 90%!",
                message=f"Almost there! Only ${remaining:.0f} more to reach your goal",
                priority=NotificationPriority.NORMAL,
            )
        if percent >= 75:
            return self._milestone(
                record,
                title=f"🎯 {short_name(record.name)} at 75%!",
                message=f"Great progress! ${remaining:.0f} to go",
                priority=NotificationPriority.LOW,
            )
        return None

    @staticmethod
    def _milestone(
        record: SavingsGoal,
        title: str,
        message: str,
        priority: NotificationPriority,
    ) -> NotificationCandidate:
        return NotificationCandidate(
            type=NotificationType.GOAL_MILESTONE,
            title=title,
            message=message,
            reference_id=record.id,
            reference_type=ReferenceType.GOAL,
            priority=priority,
            link_path="/goals",
            link_label="View Goals",
        )


class GoalAtRiskRule(NotificationRule[SavingsGoal]):
    """
    Active goals whose deadline is close while progress is low.

    Independent of GoalProgressRule; both can fire for one goal.
    """

    name = "goal_at_risk"

    def __init__(self, window_days: int = 30, max_percent: float = 80.0):
        self.window_days = window_days
        self.max_percent = max_percent

    def records(self, sources: NotificationSources) -> Iterable[SavingsGoal]:
        return [g for g in sources.goals if g.status == GoalStatus.ACTIVE]

    def check(self, record: SavingsGoal, today: date) -> Optional[NotificationCandidate]:
        if record.target_date is None:
            return None

        days = days_until(record.target_date, today)
        percent = record.percent_complete
        if not (0 < days <= self.window_days and percent < self.max_percent):
            return None

        return NotificationCandidate(
            type=NotificationType.GOAL_AT_RISK,
            title=f"⚠️ {short_name(record.name)} deadline approaching",
            message=(
                f"{days} days left to save ${float(record.remaining_amount):.0f} "
                f"(currently at {percent:.0f}%)"
            ),
            reference_id=record.id,
            reference_type=ReferenceType.GOAL,
            priority=NotificationPriority.HIGH,
            link_path="/goals",
            link_label="View Goals",
        )


class RecurringExpenseDueRule(NotificationRule[Transaction]):
    """Active recurring expenses falling due between today and the lookahead."""

    name = "recurring_expense"

    def __init__(self, lookahead_days: int = 3):
        self.lookahead_days = lookahead_days

    def records(self, sources: NotificationSources) -> Iterable[Transaction]:
        return sources.recurring_expenses

    def check(self, record: Transaction, today: date) -> Optional[NotificationCandidate]:
        if not (
            record.is_expense
            and record.is_recurring
            and record.status == RecordStatus.ACTIVE
        ):
            return None

        days = days_until(record.date, today)
        if not 0 <= days <= self.lookahead_days:
            return None

        label = short_name(record.description or record.category)
        title = (
            f"📅 {label} due today" if days == 0
            else f"📅 {label} due in {days} days"
        )

        return NotificationCandidate(
            type=NotificationType.RECURRING_EXPENSE,
            title=title,
            message=f"Recurring expense of ${float(record.amount):.2f}",
            reference_id=record.id,
            reference_type=ReferenceType.TRANSACTION,
            priority=NotificationPriority.HIGH if days == 0 else NotificationPriority.NORMAL,
            link_path="/expenses",
            link_label="View Expenses",
        )
