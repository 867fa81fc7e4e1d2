"""Tests for the notification rules and the rule evaluator."""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from ledgerwise.config import NotificationSettings
from ledgerwise.models.finance import (
    BudgetSnapshot,
    GoalStatus,
    NotificationSources,
    RecordStatus,
    SavingsGoal,
    Subscription,
    Transaction,
    TransactionType,
)
from ledgerwise.models.notification import NotificationPriority, NotificationType
from ledgerwise.notifications.evaluator import NotificationRuleEvaluator, default_rules
from ledgerwise.notifications.rules import (
    BudgetWarningRule,
    GoalAtRiskRule,
    GoalProgressRule,
    RecurringExpenseDueRule,
    SubscriptionReminderRule,
)
from ledgerwise.services.clock import NotAuthenticatedError

TODAY = date(2024, 1, 20)


def subscription(reminder_in=None, **kwargs):
    reminder = TODAY + timedelta(days=reminder_in) if reminder_in is not None else None
    return Subscription(
        name=kwargs.pop("name", "Streaming"),
        amount=kwargs.pop("amount", Decimal("12.99")),
        reminder_date=reminder,
        **kwargs,
    )


def goal(current, target="1000", due_in=None, **kwargs):
    return SavingsGoal(
        name=kwargs.pop("name", "Vacation"),
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        target_date=TODAY + timedelta(days=due_in) if due_in is not None else None,
        **kwargs,
    )


def recurring(due_in, **kwargs):
    return Transaction(
        type=kwargs.pop("type", TransactionType.EXPENSE),
        amount=Decimal("45"),
        category="utilities",
        description=kwargs.pop("description", "Internet"),
        date=TODAY + timedelta(days=due_in),
        is_recurring=kwargs.pop("is_recurring", True),
        **kwargs,
    )


class TestSubscriptionReminderRule:
    """Tests for subscription reminders."""

    rule = SubscriptionReminderRule()

    def test_upcoming_reminder(self):
        """Test a reminder two days out."""
        candidate = self.rule.check(subscription(2), TODAY)
        assert candidate.type == NotificationType.SUBSCRIPTION_REMINDER
        assert candidate.title == "🔔 Streaming reminder in 2 days"
        assert candidate.priority == NotificationPriority.NORMAL
        assert candidate.message == "Reminder for Streaming subscription ($12.99/monthly)"

    def test_reminder_today(self):
        """Test a reminder due today."""
        candidate = self.rule.check(subscription(0), TODAY)
        assert candidate.title == "🔔 Today: Streaming reminder"
        assert candidate.priority == NotificationPriority.HIGH

    def test_overdue_reminder(self):
        """Test a reminder whose date has passed."""
        candidate = self.rule.check(subscription(-4), TODAY)
        assert candidate.title == "⚠️ Overdue: Streaming reminder"
        assert candidate.priority == NotificationPriority.HIGH

    def test_far_reminder_is_ignored(self):
        """Test that reminders past the lookahead do not fire."""
        assert self.rule.check(subscription(4), TODAY) is None

    def test_inactive_or_unscheduled_is_ignored(self):
        """Test paused subscriptions and subscriptions without a reminder."""
        assert self.rule.check(subscription(1, status=RecordStatus.PAUSED), TODAY) is None
        assert self.rule.check(subscription(None), TODAY) is None

    def test_reminder_note_is_the_message(self):
        """Test that a custom note replaces the default message."""
        candidate = self.rule.check(subscription(1, reminder_note="Cancel before renewal"), TODAY)
        assert candidate.message == "Cancel before renewal"

    def test_reference_and_link(self):
        """Test reference and link fields."""
        sub = subscription(1)
        candidate = self.rule.check(sub, TODAY)
        assert candidate.reference_id == sub.id
        assert candidate.reference_type.value == "subscription"
        assert candidate.link_path == "/subscriptions"

    def test_longest_name_fits_the_title(self):
        """Test that a maximum-length name is shortened instead of failing."""
        candidate = self.rule.check(subscription(-1, name="S" * 200), TODAY)

        assert len(candidate.title) <= 200
        assert candidate.title.startswith("⚠️ Overdue: " + "S" * 119 + "…")
        assert "S" * 200 in candidate.message


class TestBudgetWarningRule:
    """Tests for budget warnings."""

    rule = BudgetWarningRule()

    def test_approaching_limit(self):
        """Test a budget at 90%."""
        budget = BudgetSnapshot(category="Food", allocated=Decimal("200"), spent=Decimal("180"))
        candidates = self.rule.evaluate(NotificationSources(budgets=[budget]), TODAY)

        assert len(candidates) == 1
        assert candidates[0].priority == NotificationPriority.HIGH
        assert "90%" in candidates[0].title
        assert candidates[0].message == "Only $20 remaining in this budget"

    def test_exceeded_is_exclusive(self):
        """Test that a fully spent budget only gets the exceeded alert."""
        budget = BudgetSnapshot(category="Food", allocated=Decimal("200"), spent=Decimal("200"))
        candidates = self.rule.evaluate(NotificationSources(budgets=[budget]), TODAY)

        assert len(candidates) == 1
        assert candidates[0].priority == NotificationPriority.URGENT
        assert candidates[0].title == "🚨 Food budget exceeded!"
        assert candidates[0].message == "You've spent $200 of $200 (100%)"

    def test_threshold_is_inclusive(self):
        """Test that exactly 80% warns and just below does not."""
        at = BudgetSnapshot(category="Fun", allocated=Decimal("100"), spent=Decimal("80"))
        below = BudgetSnapshot(category="Fun", allocated=Decimal("100"), spent=Decimal("79.99"))
        assert self.rule.check(at, TODAY) is not None
        assert self.rule.check(below, TODAY) is None

    def test_unfunded_budget_is_ignored(self):
        """Test that a zero allocation never fires."""
        budget = BudgetSnapshot(category="Food", allocated=Decimal("0"), spent=Decimal("10"))
        assert self.rule.check(budget, TODAY) is None

    def test_configurable_threshold(self):
        """Test a custom warning percentage."""
        rule = BudgetWarningRule(warning_percent=50)
        budget = BudgetSnapshot(category="Food", allocated=Decimal("200"), spent=Decimal("110"))
        assert rule.check(budget, TODAY).priority == NotificationPriority.HIGH


class TestGoalRules:
    """Tests for goal progress and at-risk rules."""

    progress = GoalProgressRule()
    at_risk = GoalAtRiskRule()

    def test_goal_achieved(self):
        """Test a completed target."""
        candidate = self.progress.check(goal("1000"), TODAY)
        assert candidate.type == NotificationType.GOAL_ACHIEVED
        assert candidate.priority == NotificationPriority.HIGH
        assert candidate.title == "🎉 Vacation achieved!"

    def test_ninety_percent_milestone(self):
        """Test the 90% tier."""
        candidate = self.progress.check(goal("950"), TODAY)
        assert candidate.type == NotificationType.GOAL_MILESTONE
        assert candidate.title == "🎯 Vacation at 90%!"
        assert candidate.priority == NotificationPriority.NORMAL
        assert candidate.message == "Almost there! Only $50 more to reach your goal"

    def test_seventy_five_percent_milestone(self):
        """Test the 75% tier."""
        candidate = self.progress.check(goal("770"), TODAY)
        assert candidate.title == "🎯 Vacation at 75%!"
        assert candidate.priority == NotificationPriority.LOW

    def test_below_milestones(self):
        """Test that early progress is quiet."""
        assert self.progress.check(goal("500"), TODAY) is None

    def test_completed_goals_are_skipped(self):
        """Test that only active goals are inspected."""
        done = goal("1000", status=GoalStatus.COMPLETED)
        assert self.progress.evaluate(NotificationSources(goals=[done]), TODAY) == []
        assert self.at_risk.evaluate(NotificationSources(goals=[done]), TODAY) == []

    def test_goal_at_risk(self):
        """Test a goal with a near deadline and low progress."""
        candidate = self.at_risk.check(goal("500", due_in=20), TODAY)
        assert candidate.type == NotificationType.GOAL_AT_RISK
        assert candidate.priority == NotificationPriority.HIGH
        assert candidate.message == "20 days left to save $500 (currently at 50%)"

    def test_goal_not_at_risk(self):
        """Test deadlines that are far, passed, missing, or nearly met."""
        assert self.at_risk.check(goal("500", due_in=45), TODAY) is None
        assert self.at_risk.check(goal("500", due_in=0), TODAY) is None
        assert self.at_risk.check(goal("500", due_in=-3), TODAY) is None
        assert self.at_risk.check(goal("500"), TODAY) is None
        assert self.at_risk.check(goal("800", due_in=10), TODAY) is None

    def test_milestone_and_at_risk_both_fire(self):
        """Test that the two goal rules are independent."""
        sources = NotificationSources(goals=[goal("770", due_in=20)])
        evaluator = NotificationRuleEvaluator([self.progress, self.at_risk])

        candidates = evaluator.evaluate("user-1", TODAY, sources)

        assert [c.type for c in candidates] == [
            NotificationType.GOAL_MILESTONE,
            NotificationType.GOAL_AT_RISK,
        ]
        assert len({c.dedup_key for c in candidates}) == 2


class TestRecurringExpenseDueRule:
    """Tests for recurring expense reminders."""

    rule = RecurringExpenseDueRule()

    def test_due_soon(self):
        """Test an expense due in two days."""
        candidate = self.rule.check(recurring(2), TODAY)
        assert candidate.type == NotificationType.RECURRING_EXPENSE
        assert candidate.title == "📅 Internet due in 2 days"
        assert candidate.message == "Recurring expense of $45.00"
        assert candidate.priority == NotificationPriority.NORMAL

    def test_due_today(self):
        """Test an expense due today."""
        candidate = self.rule.check(recurring(0), TODAY)
        assert candidate.title == "📅 Internet due today"
        assert candidate.priority == NotificationPriority.HIGH

    def test_out_of_window(self):
        """Test past and far-future expenses."""
        assert self.rule.check(recurring(-1), TODAY) is None
        assert self.rule.check(recurring(4), TODAY) is None

    def test_only_active_recurring_expenses(self):
        """Test that one-offs, income and paused entries are ignored."""
        assert self.rule.check(recurring(1, is_recurring=False), TODAY) is None
        assert self.rule.check(recurring(1, type=TransactionType.INCOME), TODAY) is None
        assert self.rule.check(recurring(1, status=RecordStatus.PAUSED), TODAY) is None

    def test_falls_back_to_category(self):
        """Test the label when there is no description."""
        candidate = self.rule.check(recurring(1, description=""), TODAY)
        assert candidate.title == "📅 utilities due in 1 days"

    def test_longest_description_fits_the_title(self):
        """Test that a 500-character description still yields an alert."""
        candidate = self.rule.check(recurring(2, description="d" * 500), TODAY)

        assert len(candidate.title) <= 200
        assert candidate.title.endswith("… due in 2 days")


class TestNotificationRuleEvaluator:
    """Tests for the rule battery."""

    def test_requires_user(self):
        """Test that evaluation without a user is refused."""
        with pytest.raises(NotAuthenticatedError):
            NotificationRuleEvaluator().evaluate("", TODAY, NotificationSources())

    def test_empty_sources(self):
        """Test that nothing fires without records."""
        assert NotificationRuleEvaluator().evaluate("user-1", TODAY) == []

    def test_emission_order_follows_registry(self):
        """Test that candidates are grouped by rule in registry order."""
        sources = NotificationSources(
            subscriptions=[subscription(1)],
            budgets=[BudgetSnapshot(category="Food", allocated=Decimal("100"), spent=Decimal("95"))],
            goals=[goal("770", due_in=20)],
            recurring_expenses=[recurring(0)],
        )

        candidates = NotificationRuleEvaluator().evaluate("user-1", TODAY, sources)

        assert [c.type for c in candidates] == [
            NotificationType.SUBSCRIPTION_REMINDER,
            NotificationType.BUDGET_WARNING,
            NotificationType.GOAL_MILESTONE,
            NotificationType.GOAL_AT_RISK,
            NotificationType.RECURRING_EXPENSE,
        ]

    def test_long_names_do_not_abort_the_battery(self):
        """Test that every rule still fires with maximum-length names."""
        sources = NotificationSources(
            subscriptions=[subscription(0, name="S" * 200)],
            budgets=[BudgetSnapshot(category="C" * 100, allocated=Decimal("100"), spent=Decimal("100"))],
            goals=[goal("770", due_in=20, name="G" * 200)],
            recurring_expenses=[recurring(0, description="d" * 500)],
        )

        candidates = NotificationRuleEvaluator().evaluate("user-1", TODAY, sources)

        assert len(candidates) == 5
        assert all(len(c.title) <= 200 for c in candidates)

    def test_failing_record_is_skipped(self):
        """Test that a record whose check raises does not stop the others."""
        class PickyRule(SubscriptionReminderRule):
            def check(self, record, today):
                if record.name == "Broken":
                    raise ValueError("cannot build alert")
                return super().check(record, today)

        sources = NotificationSources(subscriptions=[
            subscription(0, name="Broken"),
            subscription(1, name="Music"),
        ])
        evaluator = NotificationRuleEvaluator([PickyRule(), BudgetWarningRule()])

        candidates = evaluator.evaluate("user-1", TODAY, sources)

        assert [c.title for c in candidates] == ["🔔 Music reminder in 1 days"]

    def test_as_of_uses_calendar_day(self):
        """Test that the evaluation instant's time of day is ignored."""
        sources = NotificationSources(subscriptions=[subscription(0)])
        evaluator = NotificationRuleEvaluator()

        late = evaluator.evaluate("user-1", datetime(2024, 1, 20, 23, 59), sources)

        assert late[0].title == "🔔 Today: Streaming reminder"

    def test_default_rules_follow_settings(self):
        """Test that thresholds come from NotificationSettings."""
        settings = NotificationSettings(reminder_lookahead_days=7, budget_warning_percent=60)
        rules = default_rules(settings)

        assert rules[0].lookahead_days == 7
        assert rules[1].warning_percent == 60
        assert [r.name for r in rules] == [
            "subscription_reminder",
            "budget_warning",
            "goal_progress",
            "goal_at_risk",
            "recurring_expense",
        ]
