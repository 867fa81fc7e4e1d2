"""Audit logging package."""

from ledgerwise.audit.logger import (
    AuditLogger,
    create_correlation_id,
    sanitize_error,
    user_friendly_error_message,
)

__all__ = [
    "AuditLogger",
    "create_correlation_id",
    "sanitize_error",
    "user_friendly_error_message",
]
