"""
Audit Models for Ledgerwise

Failures in the notification pipeline are silent for the end user, so the
audit trail is the only place they show up. Every pass, skip and failure
is recorded here.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Notification evaluation
    EVALUATION_STARTED = "evaluation_started"
    EVALUATION_COMPLETED = "evaluation_completed"
    EVALUATION_ABORTED = "evaluation_aborted"
    FETCH_FAILED = "fetch_failed"

    # Dedup / persistence
    NOTIFICATION_INSERTED = "notification_inserted"
    NOTIFICATION_SKIPPED = "notification_skipped"
    NOTIFICATION_PERSIST_FAILED = "notification_persist_failed"

    # Inbox actions
    NOTIFICATION_READ = "notification_read"
    NOTIFICATION_DISMISSED = "notification_dismissed"

    # Reporting
    STATS_COMPUTED = "stats_computed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Whose data and which record
    user_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'goal', 'notification')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - all events of one evaluation pass share this
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_code,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_code or "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.evaluation_started(user_id, correlation_id)
        event = AuditEventBuilder.notification_skipped(user_id, "budget_warning", ref, cid)
    """

    @staticmethod
    def evaluation_started(user_id: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVALUATION_STARTED,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Notification evaluation pass started",
        )

    @staticmethod
    def evaluation_completed(
        user_id: str,
        candidate_count: int,
        inserted_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVALUATION_COMPLETED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"Evaluation produced {candidate_count} candidates, "
                f"{inserted_count} new"
            ),
            details={
                "candidate_count": candidate_count,
                "inserted_count": inserted_count,
            },
        )

    @staticmethod
    def evaluation_aborted(reason: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVALUATION_ABORTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Evaluation aborted: {reason}",
        )

    @staticmethod
    def fetch_failed(
        user_id: str,
        collection: str,
        error_code: Optional[str],
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Could not load {collection}; treating as empty",
            details={"collection": collection},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def notification_inserted(
        user_id: str,
        notification_id: UUID,
        notification_type: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_INSERTED,
            user_id=user_id,
            entity_type="notification",
            entity_id=notification_id,
            correlation_id=correlation_id,
            description=f"Notification created: {notification_type}",
            details={"type": notification_type},
        )

    @staticmethod
    def notification_skipped(
        user_id: str,
        notification_type: str,
        reference_id: UUID,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_SKIPPED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_id=reference_id,
            correlation_id=correlation_id,
            description=f"Duplicate {notification_type} skipped",
            details={"type": notification_type},
        )

    @staticmethod
    def notification_persist_failed(
        user_id: str,
        notification_type: str,
        reference_id: Optional[UUID],
        error_code: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_id=reference_id,
            correlation_id=correlation_id,
            description=f"Failed to persist {notification_type}",
            details={"type": notification_type},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def notification_read(user_id: str, notification_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_READ,
            user_id=user_id,
            entity_type="notification",
            entity_id=notification_id,
            description=(
                "Notification marked as read"
                if notification_id else "All notifications marked as read"
            ),
            is_user_action=True,
        )

    @staticmethod
    def notification_dismissed(user_id: str, notification_id: Optional[UUID]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_DISMISSED,
            user_id=user_id,
            entity_type="notification",
            entity_id=notification_id,
            description=(
                "Notification dismissed"
                if notification_id else "All notifications dismissed"
            ),
            is_user_action=True,
        )

    @staticmethod
    def stats_computed(user_id: str, period: str, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description=f"Summary computed for {period}",
            details={
                "period": period,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_code=error_code,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
