"""
Notification Inbox

User-facing view of persisted notifications: what is waiting, how much is
unread, and the read/dismiss actions. Every call is scoped to the
signed-in user.

Dismissing a notification frees its (type, reference) key, so the next
evaluation pass may raise the same alert again if the condition persists.
"""

from typing import Optional
from uuid import UUID

from ledgerwise.audit import AuditLogger
from ledgerwise.models.notification import PersistedNotification
from ledgerwise.services.clock import SessionProvider, require_user
from ledgerwise.services.storage import NotificationStorageInterface


class NotificationInbox:
    """Read and update the current user's notifications."""

    def __init__(
        self,
        storage: NotificationStorageInterface,
        session: SessionProvider,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._session = session
        self._audit_logger = audit_logger

    async def notifications(self) -> list[PersistedNotification]:
        """Undismissed notifications, newest first."""
        user_id = require_user(self._session)
        return await self._storage.list_notifications(user_id)

    async def unread_count(self) -> int:
        return sum(1 for n in await self.notifications() if not n.is_read)

    async def urgent(self) -> list[PersistedNotification]:
        """Undismissed notifications with urgent or high priority."""
        return [n for n in await self.notifications() if n.is_urgent]

    async def mark_read(self, notification_id: UUID) -> bool:
        user_id = require_user(self._session)
        updated = await self._storage.mark_read(user_id, notification_id)
        if updated and self._audit_logger:
            await self._audit_logger.log_notification_read(user_id, notification_id)
        return updated

    async def mark_all_read(self) -> int:
        user_id = require_user(self._session)
        changed = await self._storage.mark_all_read(user_id)
        if self._audit_logger:
            await self._audit_logger.log_notification_read(user_id)
        return changed

    async def dismiss(self, notification_id: UUID) -> bool:
        user_id = require_user(self._session)
        updated = await self._storage.dismiss(user_id, notification_id)
        if updated and self._audit_logger:
            await self._audit_logger.log_notification_dismissed(user_id, notification_id)
        return updated

    async def dismiss_all(self) -> int:
        user_id = require_user(self._session)
        changed = await self._storage.dismiss_all(user_id)
        if self._audit_logger:
            await self._audit_logger.log_notification_dismissed(user_id)
        return changed
