"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory backend serves tests
and demo mode.
"""

from ledgerwise.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    NotificationStorageInterface,
    StorageConnectionError,
    StorageError,
    StorageErrorCode,
)
from ledgerwise.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    InMemoryNotificationStorage,
)
from ledgerwise.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
    GoogleSheetsNotificationStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinanceStorageInterface",
    "NotificationStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    "StorageErrorCode",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    "InMemoryNotificationStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStorage",
    "GoogleSheetsNotificationStorage",
]
