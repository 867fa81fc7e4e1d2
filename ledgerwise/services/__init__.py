"""Services package."""

from ledgerwise.services.clock import (
    Clock,
    FixedClock,
    NotAuthenticatedError,
    SessionProvider,
    StaticSession,
    SystemClock,
    require_user,
)
from ledgerwise.services.storage import (
    AuditStorageInterface,
    FinanceStorageInterface,
    NotificationStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "Clock",
    "FinanceStorageInterface",
    "FixedClock",
    "NotAuthenticatedError",
    "NotificationStorageInterface",
    "SessionProvider",
    "StaticSession",
    "StorageError",
    "SystemClock",
    "require_user",
]
