"""
Audit Logger

DESIGN DECISION: Failures in the notification pipeline never reach the end
user. They are recorded here instead, for diagnostics.

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace all events of one evaluation pass
- Sanitizes error details outside debug mode
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from ledgerwise.config import get_settings
from ledgerwise.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from ledgerwise.services.storage import AuditStorageInterface, StorageErrorCode


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


# Storage error codes that are safe to show, with a fixed log message
KNOWN_ERROR_CODES = {
    StorageErrorCode.PERMISSION_DENIED: "Permission denied",
    StorageErrorCode.NOT_FOUND: "Sheet or record not found",
    StorageErrorCode.RATE_LIMITED: "Rate limit exceeded",
    StorageErrorCode.UNAVAILABLE: "Storage unavailable",
}

USER_FRIENDLY_MESSAGES = {
    StorageErrorCode.PERMISSION_DENIED: "You do not have permission to perform this action.",
    StorageErrorCode.NOT_FOUND: "The requested data could not be found.",
    StorageErrorCode.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    StorageErrorCode.UNAVAILABLE: "Storage is temporarily unavailable. Please try again later.",
}

MAX_SANITIZED_MESSAGE_LENGTH = 100


def error_code_of(error: BaseException) -> Optional[str]:
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def sanitize_error(error: BaseException) -> tuple[Optional[str], str]:
    """
    Reduce an exception to (code, message) that is safe to log.

    Known codes map to fixed messages; anything else keeps only the
    first 100 characters of the message.
    """
    code = error_code_of(error)
    if code in KNOWN_ERROR_CODES:
        return code, KNOWN_ERROR_CODES[code]
    message = str(error)
    if not message:
        return code, "An error occurred"
    return code, message[:MAX_SANITIZED_MESSAGE_LENGTH]


def user_friendly_error_message(error: BaseException) -> str:
    """Message suitable for end users. Never exposes internal details."""
    return USER_FRIENDLY_MESSAGES.get(
        error_code_of(error) or "",
        "An unexpected error occurred. Please try again.",
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        debug: Optional[bool] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            debug: Log raw error messages instead of sanitized ones.
                   Defaults to the app's debug_mode setting, and is
                   always off in production.
        """
        self._storage = storage
        if debug is None:
            app_settings = get_settings().app
            debug = app_settings.debug_mode and not app_settings.is_production
        self._debug = debug
        self._logger = structlog.get_logger("ledgerwise.audit")

    def describe_error(self, error: BaseException) -> tuple[Optional[str], str]:
        """(code, message) for an exception, sanitized unless in debug mode."""
        if self._debug:
            return error_code_of(error), f"{type(error).__name__}: {error}"
        return sanitize_error(error)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=sanitize_error(e)[1],
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_evaluation_started(self, user_id: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.evaluation_started(user_id, correlation_id))

    async def log_evaluation_completed(
        self,
        user_id: str,
        candidate_count: int,
        inserted_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.evaluation_completed(
            user_id=user_id,
            candidate_count=candidate_count,
            inserted_count=inserted_count,
            correlation_id=correlation_id,
        ))

    async def log_evaluation_aborted(self, reason: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.evaluation_aborted(reason, correlation_id))

    async def log_fetch_failed(
        self,
        user_id: str,
        collection: str,
        error: BaseException,
        correlation_id: UUID,
    ) -> None:
        code, message = self.describe_error(error)
        await self.log(AuditEventBuilder.fetch_failed(
            user_id=user_id,
            collection=collection,
            error_code=code,
            error_message=message,
            correlation_id=correlation_id,
        ))

    async def log_notification_inserted(
        self,
        user_id: str,
        notification_id: UUID,
        notification_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.notification_inserted(
            user_id=user_id,
            notification_id=notification_id,
            notification_type=notification_type,
            correlation_id=correlation_id,
        ))

    async def log_notification_skipped(
        self,
        user_id: str,
        notification_type: str,
        reference_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.notification_skipped(
            user_id=user_id,
            notification_type=notification_type,
            reference_id=reference_id,
            correlation_id=correlation_id,
        ))

    async def log_persist_failed(
        self,
        user_id: str,
        notification_type: str,
        reference_id: Optional[UUID],
        error: BaseException,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        code, message = self.describe_error(error)
        await self.log(AuditEventBuilder.notification_persist_failed(
            user_id=user_id,
            notification_type=notification_type,
            reference_id=reference_id,
            error_code=code,
            error_message=message,
            correlation_id=correlation_id,
        ))

    async def log_notification_read(
        self,
        user_id: str,
        notification_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.notification_read(user_id, notification_id))

    async def log_notification_dismissed(
        self,
        user_id: str,
        notification_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.notification_dismissed(user_id, notification_id))

    async def log_stats_computed(
        self,
        user_id: str,
        period: str,
        transaction_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.stats_computed(user_id, period, transaction_count))

    async def log_error(
        self,
        error_type: str,
        error: BaseException,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        code, message = self.describe_error(error)
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=message,
            error_code=code,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per evaluation pass and pass it through every step.
    """
    return uuid4()
