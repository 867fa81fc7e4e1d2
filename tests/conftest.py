"""
Shared fixtures for the Ledgerwise test suite.

Everything runs against the in-memory backend with a fixed clock.
No test touches Google Sheets or the system clock.
"""

from datetime import datetime

import pytest

from ledgerwise.audit import AuditLogger
from ledgerwise.services.clock import FixedClock, StaticSession
from ledgerwise.services.storage import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    InMemoryNotificationStorage,
)

USER_ID = "user-1"


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 20, 9, 30))


@pytest.fixture
def session():
    return StaticSession(USER_ID)


@pytest.fixture
def finance_storage():
    return InMemoryFinanceStorage()


@pytest.fixture
def notification_storage(clock):
    return InMemoryNotificationStorage(clock)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage, debug=False)
