"""
Notification Rule Evaluator

Runs the rule battery over pre-fetched records. No I/O happens here: the
pipeline fetches, this module decides, the sink persists.
"""

from typing import Optional, Sequence

from ledgerwise.analytics.periods import DateLike, to_day
from ledgerwise.config import NotificationSettings
from ledgerwise.models.finance import NotificationSources
from ledgerwise.models.notification import NotificationCandidate
from ledgerwise.notifications.rules import (
    BudgetWarningRule,
    GoalAtRiskRule,
    GoalProgressRule,
    NotificationRule,
    RecurringExpenseDueRule,
    SubscriptionReminderRule,
)
from ledgerwise.services.clock import NotAuthenticatedError


def default_rules(settings: Optional[NotificationSettings] = None) -> list[NotificationRule]:
    """The standard rule battery, in emission order."""
    settings = settings or NotificationSettings()
    return [
        SubscriptionReminderRule(lookahead_days=settings.reminder_lookahead_days),
        BudgetWarningRule(warning_percent=settings.budget_warning_percent),
        GoalProgressRule(),
        GoalAtRiskRule(
            window_days=settings.goal_risk_window_days,
            max_percent=settings.goal_risk_max_percent,
        ),
        RecurringExpenseDueRule(lookahead_days=settings.recurring_lookahead_days),
    ]


class NotificationRuleEvaluator:
    """Applies every registered rule and concatenates their candidates."""

    def __init__(self, rules: Optional[Sequence[NotificationRule]] = None):
        self._rules = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> list[NotificationRule]:
        return list(self._rules)

    def evaluate(
        self,
        user_id: str,
        as_of: DateLike,
        data: Optional[NotificationSources] = None,
    ) -> list[NotificationCandidate]:
        """
        Candidate alerts for one user as of one day.

        Args:
            user_id: Owner of the records in `data`
            as_of: The evaluation instant; only its calendar day matters
            data: Current records; missing collections count as empty

        Returns:
            All candidates, grouped by rule in registry order
        """
        if not user_id:
            raise NotAuthenticatedError("Cannot evaluate notifications without a user")

        today = to_day(as_of)
        sources = data if data is not None else NotificationSources()

        candidates = []
        for rule in self._rules:
            candidates.extend(rule.evaluate(sources, today))
        return candidates
