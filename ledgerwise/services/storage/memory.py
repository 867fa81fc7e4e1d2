"""
In-Memory Storage Implementation

Backs the test suite and the demo mode of the dashboard. Records live in
per-user lists; nothing survives a restart.
"""

from collections import defaultdict
from typing import Optional
from uuid import UUID

from ledgerwise.models.audit import AuditEvent
from ledgerwise.models.finance import (
    BudgetSnapshot,
    GoalContribution,
    SavingsGoal,
    Subscription,
    Transaction,
    TransactionType,
)
from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationType,
    PersistedNotification,
)
from ledgerwise.services.clock import Clock
from ledgerwise.services.storage.interface import (
    AuditStorageInterface,
    FinanceStorageInterface,
    NotificationStorageInterface,
)


class InMemoryFinanceStorage(FinanceStorageInterface):
    """Finance records held in memory, keyed by user."""

    def __init__(self):
        self._transactions: dict[str, list[Transaction]] = defaultdict(list)
        self._budgets: dict[str, list[BudgetSnapshot]] = defaultdict(list)
        self._goals: dict[str, list[SavingsGoal]] = defaultdict(list)
        self._contributions: dict[str, list[GoalContribution]] = defaultdict(list)
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    def add_transaction(self, user_id: str, transaction: Transaction) -> None:
        self._transactions[user_id].append(transaction)

    def add_budget(self, user_id: str, budget: BudgetSnapshot) -> None:
        self._budgets[user_id].append(budget)

    def add_goal(self, user_id: str, goal: SavingsGoal) -> None:
        self._goals[user_id].append(goal)

    def add_contribution(self, user_id: str, contribution: GoalContribution) -> None:
        self._contributions[user_id].append(contribution)

    def add_subscription(self, user_id: str, subscription: Subscription) -> None:
        self._subscriptions[user_id].append(subscription)

    async def list_transactions(
        self,
        user_id: str,
        recurring_expenses_only: bool = False,
    ) -> list[Transaction]:
        transactions = list(self._transactions.get(user_id, []))
        if recurring_expenses_only:
            transactions = [
                t for t in transactions
                if t.type == TransactionType.EXPENSE and t.is_recurring
            ]
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def list_budgets(self, user_id: str) -> list[BudgetSnapshot]:
        return list(self._budgets.get(user_id, []))

    async def list_goals(self, user_id: str) -> list[SavingsGoal]:
        return list(self._goals.get(user_id, []))

    async def list_contributions(self, user_id: str) -> list[GoalContribution]:
        return [c for c in self._contributions.get(user_id, []) if c.added_amount > 0]

    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        return list(self._subscriptions.get(user_id, []))


class InMemoryNotificationStorage(NotificationStorageInterface):
    """Notifications held in memory, in insertion order."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._rows: list[PersistedNotification] = []

    def _owned(self, user_id: str) -> list[PersistedNotification]:
        return [n for n in self._rows if n.user_id == user_id]

    async def exists_undismissed(
        self,
        user_id: str,
        reference_id: UUID,
        notification_type: NotificationType,
    ) -> bool:
        return any(
            n.reference_id == reference_id
            and n.type == notification_type
            and not n.is_dismissed
            for n in self._owned(user_id)
        )

    async def insert(self, user_id: str, candidate: NotificationCandidate) -> UUID:
        created_at = self._clock.now() if self._clock else None
        notification = PersistedNotification.from_candidate(user_id, candidate, created_at)
        self._rows.append(notification)
        return notification.id

    async def list_notifications(
        self,
        user_id: str,
        include_dismissed: bool = False,
    ) -> list[PersistedNotification]:
        rows = [
            n for n in self._owned(user_id)
            if include_dismissed or not n.is_dismissed
        ]
        # Stable sort keeps insertion order for equal timestamps; newest first
        return sorted(reversed(rows), key=lambda n: n.created_at, reverse=True)

    async def mark_read(self, user_id: str, notification_id: UUID) -> bool:
        for n in self._owned(user_id):
            if n.id == notification_id:
                n.is_read = True
                return True
        return False

    async def mark_all_read(self, user_id: str) -> int:
        changed = 0
        for n in self._owned(user_id):
            if not n.is_read:
                n.is_read = True
                changed += 1
        return changed

    async def dismiss(self, user_id: str, notification_id: UUID) -> bool:
        for n in self._owned(user_id):
            if n.id == notification_id:
                n.is_dismissed = True
                return True
        return False

    async def dismiss_all(self, user_id: str) -> int:
        changed = 0
        for n in self._owned(user_id):
            if not n.is_dismissed:
                n.is_dismissed = True
                changed += 1
        return changed


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log in memory."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
