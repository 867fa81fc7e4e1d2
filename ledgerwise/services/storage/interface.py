"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the analytics and notification engines decoupled from storage

Every call is scoped to one user. The interface is intentionally small -
just the reads the engines need and the notification writes.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from uuid import UUID

from ledgerwise.models.audit import AuditEvent
from ledgerwise.models.finance import (
    BudgetSnapshot,
    GoalContribution,
    SavingsGoal,
    Subscription,
    Transaction,
)
from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationType,
    PersistedNotification,
)


class FinanceStorageInterface(ABC):
    """
    Read access to a user's finance records.

    Budgets' `spent` and goals' `current_amount` are kept current by the
    backend; callers treat them as read-only.
    """

    @abstractmethod
    async def list_transactions(
        self,
        user_id: str,
        recurring_expenses_only: bool = False,
    ) -> list[Transaction]:
        """
        List a user's transactions, newest first.

        Args:
            user_id: Owner of the records
            recurring_expenses_only: Only return expenses flagged as recurring

        Returns:
            List of transactions ordered by date descending
        """
        pass

    @abstractmethod
    async def list_budgets(self, user_id: str) -> list[BudgetSnapshot]:
        """List all of a user's budgets."""
        pass

    @abstractmethod
    async def list_goals(self, user_id: str) -> list[SavingsGoal]:
        """List all of a user's savings goals (any status)."""
        pass

    @abstractmethod
    async def list_contributions(self, user_id: str) -> list[GoalContribution]:
        """
        List contributions with a positive amount across the user's goals.
        """
        pass

    @abstractmethod
    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        """List all of a user's tracked subscriptions (any status)."""
        pass


class NotificationStorageInterface(ABC):
    """
    Storage for persisted notifications.

    Only the read/dismissed flags are ever updated after insert.
    """

    @abstractmethod
    async def exists_undismissed(
        self,
        user_id: str,
        reference_id: UUID,
        notification_type: NotificationType,
    ) -> bool:
        """
        Check for an undismissed notification with the same dedup key.

        Args:
            user_id: Owner of the notification
            reference_id: Record the notification is about
            notification_type: Notification type

        Returns:
            True if at least one matching, undismissed notification exists
        """
        pass

    @abstractmethod
    async def insert(
        self,
        user_id: str,
        candidate: NotificationCandidate,
    ) -> UUID:
        """
        Persist a candidate as a new notification.

        Returns:
            ID of the stored notification

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_notifications(
        self,
        user_id: str,
        include_dismissed: bool = False,
    ) -> list[PersistedNotification]:
        """List a user's notifications, newest first."""
        pass

    @abstractmethod
    async def mark_read(self, user_id: str, notification_id: UUID) -> bool:
        """
        Mark one notification as read.

        Returns:
            True if a notification owned by the user was updated
        """
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification as read; returns how many changed."""
        pass

    @abstractmethod
    async def dismiss(self, user_id: str, notification_id: UUID) -> bool:
        """
        Dismiss one notification.

        Returns:
            True if a notification owned by the user was updated
        """
        pass

    @abstractmethod
    async def dismiss_all(self, user_id: str) -> int:
        """Dismiss every notification; returns how many changed."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events of one evaluation pass, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageErrorCode(str, Enum):
    """Backend-independent failure kinds a storage error can carry."""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"


class StorageError(Exception):
    """
    Base exception for storage operations.

    `code` is a StorageErrorCode value when the backend failure is recognised.
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code.value if isinstance(code, StorageErrorCode) else code


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
