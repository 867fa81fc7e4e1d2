"""
Notification Models

A NotificationCandidate is what a rule produces on one evaluation pass.
It is transient: the sink either persists it as a PersistedNotification
or drops it as a duplicate of an alert the user has not dismissed yet.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    """
    Kinds of alerts the rule battery can raise.

    Together with `reference_id` the type forms the dedup key.
    """
    SUBSCRIPTION_REMINDER = "subscription_reminder"
    BUDGET_WARNING = "budget_warning"
    GOAL_ACHIEVED = "goal_achieved"
    GOAL_MILESTONE = "goal_milestone"
    GOAL_AT_RISK = "goal_at_risk"
    RECURRING_EXPENSE = "recurring_expense"


class NotificationPriority(str, Enum):
    """Alert priority, lowest to highest."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class ReferenceType(str, Enum):
    """The kind of record an alert is about."""
    SUBSCRIPTION = "subscription"
    BUDGET = "budget"
    GOAL = "goal"
    TRANSACTION = "transaction"


class NotificationCandidate(BaseModel):
    """An alert produced by a rule, before deduplication."""
    model_config = ConfigDict(str_strip_whitespace=True)

    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., max_length=1000)
    reference_id: Optional[UUID] = None
    reference_type: Optional[ReferenceType] = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    link_path: Optional[str] = None
    link_label: Optional[str] = None

    @property
    def dedup_key(self) -> Optional[tuple[NotificationType, UUID]]:
        """(type, reference_id), or None when the alert has no reference."""
        if self.reference_id is None:
            return None
        return (self.type, self.reference_id)


class PersistedNotification(NotificationCandidate):
    """A stored alert, owned by one user."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    is_read: bool = False
    is_dismissed: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_urgent(self) -> bool:
        return self.priority in (NotificationPriority.URGENT, NotificationPriority.HIGH)

    @classmethod
    def from_candidate(
        cls,
        user_id: str,
        candidate: NotificationCandidate,
        created_at: Optional[datetime] = None,
    ) -> "PersistedNotification":
        data = candidate.model_dump()
        if created_at is not None:
            data["created_at"] = created_at
        return cls(user_id=user_id, **data)
