"""
Notification Deduplicator / Sink

Persists candidates that are not already waiting in the user's inbox.
A candidate is a duplicate when an undismissed notification with the same
(type, reference_id) exists for the user. Candidates without a reference
are always inserted.

DESIGN DECISION: The existence check is the only guard against duplicates.
Two overlapping passes can still race and insert the same alert twice;
a backend with unique constraints should enforce
(user_id, type, reference_id, is_dismissed=false) itself.
"""

from typing import Iterable, Optional
from uuid import UUID

import structlog

from ledgerwise.audit import AuditLogger
from ledgerwise.models.notification import NotificationCandidate
from ledgerwise.services.storage import NotificationStorageInterface


class NotificationSink:
    """Dedup-then-insert, one candidate at a time, in emission order."""

    def __init__(
        self,
        storage: NotificationStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)

    async def is_duplicate(self, user_id: str, candidate: NotificationCandidate) -> bool:
        if candidate.reference_id is None:
            return False
        return await self._storage.exists_undismissed(
            user_id,
            candidate.reference_id,
            candidate.type,
        )

    async def persist(
        self,
        user_id: str,
        candidates: Iterable[NotificationCandidate],
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Insert the novel candidates.

        A failure on one candidate (check or insert) is logged and the
        rest still go through.

        Returns:
            Number of notifications inserted
        """
        inserted = 0

        for candidate in candidates:
            try:
                if await self.is_duplicate(user_id, candidate):
                    if self._audit_logger:
                        await self._audit_logger.log_notification_skipped(
                            user_id=user_id,
                            notification_type=candidate.type.value,
                            reference_id=candidate.reference_id,
                            correlation_id=correlation_id,
                        )
                    continue

                notification_id = await self._storage.insert(user_id, candidate)
            except Exception as e:
                self._logger.warning(
                    "notification_persist_failed",
                    type=candidate.type.value,
                    reference_id=str(candidate.reference_id) if candidate.reference_id else None,
                )
                if self._audit_logger:
                    await self._audit_logger.log_persist_failed(
                        user_id=user_id,
                        notification_type=candidate.type.value,
                        reference_id=candidate.reference_id,
                        error=e,
                        correlation_id=correlation_id,
                    )
                continue

            inserted += 1
            if self._audit_logger:
                await self._audit_logger.log_notification_inserted(
                    user_id=user_id,
                    notification_id=notification_id,
                    notification_type=candidate.type.value,
                    correlation_id=correlation_id,
                )

        return inserted
