"""Tests for notification deduplication and persistence."""

import asyncio
from uuid import uuid4

from ledgerwise.models.audit import AuditEventType
from ledgerwise.models.notification import NotificationCandidate, NotificationType
from ledgerwise.notifications.sink import NotificationSink
from ledgerwise.services.storage import InMemoryNotificationStorage, StorageError

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def candidate(reference_id=None, type=NotificationType.BUDGET_WARNING, title="⚠️ Food at 90%"):
    return NotificationCandidate(
        type=type,
        title=title,
        message="Only $20 remaining in this budget",
        reference_id=reference_id,
    )


class FlakyNotificationStorage(InMemoryNotificationStorage):
    """Fails to insert candidates with a given title."""

    def __init__(self, failing_title, **kwargs):
        super().__init__(**kwargs)
        self.failing_title = failing_title

    async def insert(self, user_id, candidate):
        if candidate.title == self.failing_title:
            raise StorageError("sheet is read-only", code="permission_denied")
        return await super().insert(user_id, candidate)


class TestNotificationSink:
    """Tests for NotificationSink.persist."""

    def test_inserts_novel_candidates(self, notification_storage):
        """Test that new alerts are stored in emission order."""
        sink = NotificationSink(notification_storage)
        batch = [candidate(uuid4(), title="first"), candidate(uuid4(), title="second")]

        inserted = asyncio.run(sink.persist(USER_ID, batch))
        stored = asyncio.run(notification_storage.list_notifications(USER_ID))

        assert inserted == 2
        assert {n.title for n in stored} == {"first", "second"}

    def test_skips_undismissed_duplicate(self, notification_storage):
        """Test that an undismissed (type, reference) blocks a second insert."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()

        assert asyncio.run(sink.persist(USER_ID, [candidate(ref)])) == 1
        assert asyncio.run(sink.persist(USER_ID, [candidate(ref)])) == 0

        stored = asyncio.run(notification_storage.list_notifications(USER_ID))
        assert len(stored) == 1

    def test_duplicate_within_one_batch(self, notification_storage):
        """Test that the second of two identical candidates in a batch is skipped."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()

        assert asyncio.run(sink.persist(USER_ID, [candidate(ref), candidate(ref)])) == 1

    def test_same_reference_different_type(self, notification_storage):
        """Test that the dedup key includes the type."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()
        batch = [
            candidate(ref, type=NotificationType.GOAL_MILESTONE),
            candidate(ref, type=NotificationType.GOAL_AT_RISK),
        ]

        assert asyncio.run(sink.persist(USER_ID, batch)) == 2

    def test_dismissed_notification_allows_reinsertion(self, notification_storage):
        """Test that dismissing frees the dedup key."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()

        asyncio.run(sink.persist(USER_ID, [candidate(ref)]))
        asyncio.run(notification_storage.dismiss_all(USER_ID))

        assert asyncio.run(sink.persist(USER_ID, [candidate(ref)])) == 1

    def test_read_notification_still_blocks(self, notification_storage):
        """Test that reading does not free the dedup key."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()

        asyncio.run(sink.persist(USER_ID, [candidate(ref)]))
        asyncio.run(notification_storage.mark_all_read(USER_ID))

        assert asyncio.run(sink.persist(USER_ID, [candidate(ref)])) == 0

    def test_unreferenced_candidates_are_always_inserted(self, notification_storage):
        """Test that candidates without a reference skip the dedup check."""
        sink = NotificationSink(notification_storage)

        asyncio.run(sink.persist(USER_ID, [candidate()]))
        asyncio.run(sink.persist(USER_ID, [candidate()]))

        stored = asyncio.run(notification_storage.list_notifications(USER_ID))
        assert len(stored) == 2

    def test_dedup_is_per_user(self, notification_storage):
        """Test that another user's alert does not block this user's."""
        sink = NotificationSink(notification_storage)
        ref = uuid4()

        asyncio.run(sink.persist(OTHER_USER_ID, [candidate(ref)]))

        assert asyncio.run(sink.persist(USER_ID, [candidate(ref)])) == 1

    def test_failure_does_not_stop_the_batch(self, clock, audit_logger, audit_storage):
        """Test that one failed insert is logged and the rest still go through."""
        storage = FlakyNotificationStorage("broken", clock=clock)
        sink = NotificationSink(storage, audit_logger)
        batch = [
            candidate(uuid4(), title="before"),
            candidate(uuid4(), title="broken"),
            candidate(uuid4(), title="after"),
        ]

        inserted = asyncio.run(sink.persist(USER_ID, batch))

        assert inserted == 2
        stored = asyncio.run(storage.list_notifications(USER_ID))
        assert {n.title for n in stored} == {"before", "after"}

        failures = [
            e for e in audit_storage.events
            if e.event_type == AuditEventType.NOTIFICATION_PERSIST_FAILED
        ]
        assert len(failures) == 1
        assert failures[0].error_code == "permission_denied"
        assert failures[0].error_message == "Permission denied"

    def test_audit_trail(self, notification_storage, audit_logger, audit_storage):
        """Test inserted and skipped events share the correlation id."""
        sink = NotificationSink(notification_storage, audit_logger)
        ref = uuid4()
        cid = uuid4()

        asyncio.run(sink.persist(USER_ID, [candidate(ref), candidate(ref)], correlation_id=cid))

        events = asyncio.run(audit_storage.get_events_by_correlation_id(cid))
        assert [e.event_type for e in events] == [
            AuditEventType.NOTIFICATION_INSERTED,
            AuditEventType.NOTIFICATION_SKIPPED,
        ]
