"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Users can view and edit their records directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- No unique constraints, so notification dedup is a read-then-write check
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

One worksheet per table; every row carries the owning user's id.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError
from tenacity import retry, stop_after_attempt, wait_exponential

from ledgerwise.config import get_settings
from ledgerwise.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ledgerwise.models.finance import (
    BillingFrequency,
    BudgetSnapshot,
    ContributionSource,
    GoalContribution,
    GoalStatus,
    RecordStatus,
    SavingsGoal,
    Subscription,
    Transaction,
    TransactionType,
)
from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationPriority,
    NotificationType,
    PersistedNotification,
    ReferenceType,
)
from ledgerwise.services.storage.interface import (
    AuditStorageInterface,
    FinanceStorageInterface,
    NotificationStorageInterface,
    StorageConnectionError,
    StorageError,
    StorageErrorCode,
)
from ledgerwise.services.clock import Clock


logger = structlog.get_logger(__name__)

T = TypeVar("T")

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "category",
    "description",
    "date",
    "is_recurring",
    "status",
    "budget_id",
]

BUDGET_COLUMNS = [
    "id",
    "user_id",
    "category",
    "allocated",
    "spent",
    "savings_allocation",
    "linked_savings_goal_id",
]

GOAL_COLUMNS = [
    "id",
    "user_id",
    "name",
    "target_amount",
    "current_amount",
    "target_date",
    "status",
]

CONTRIBUTION_COLUMNS = [
    "goal_id",
    "user_id",
    "added_amount",
    "added_by",
    "recorded_at",
]

SUBSCRIPTION_COLUMNS = [
    "id",
    "user_id",
    "name",
    "amount",
    "frequency",
    "next_billing_date",
    "reminder_date",
    "reminder_note",
    "status",
]

NOTIFICATION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "title",
    "message",
    "reference_id",
    "reference_type",
    "priority",
    "link_path",
    "link_label",
    "is_read",
    "is_dismissed",
    "created_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
    "is_user_action",
]

SHEETS_RETRY = dict(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


# HTTP statuses of Sheets API failures that map to a known error code
API_STATUS_CODES = {
    403: StorageErrorCode.PERMISSION_DENIED,
    404: StorageErrorCode.NOT_FOUND,
    429: StorageErrorCode.RATE_LIMITED,
}


def sheets_error(action: str, error: Exception) -> StorageError:
    """Wrap a Sheets failure in a StorageError, keeping the API status as a code."""
    if isinstance(error, StorageError):
        return error
    code = None
    if isinstance(error, APIError):
        status = getattr(error.response, "status_code", None) or 0
        code = API_STATUS_CODES.get(status)
        if code is None and status >= 500:
            code = StorageErrorCode.UNAVAILABLE
    return StorageError(f"{action}: {error}", code=code)


def _record(columns: list[str], row: list) -> dict[str, str]:
    """Map a raw row onto column names; missing trailing cells become ''."""
    padded = list(row) + [""] * (len(columns) - len(row))
    return dict(zip(columns, padded))


def _optional_date(value: str) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _optional_uuid(value: str) -> Optional[UUID]:
    return UUID(value) if value else None


def _flag(value: str) -> bool:
    return value.strip().lower() == "true"


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(**SHEETS_RETRY)
    def connect(self) -> gspread.Client:
        """Establish connection using service account credentials."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}",
                    code=StorageErrorCode.NOT_FOUND,
                )
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    @property
    def settings(self):
        return self._settings


class GoogleSheetsFinanceStorage(FinanceStorageInterface):
    """
    Google Sheets implementation of the finance record reads.

    Malformed rows are logged and skipped rather than failing the whole read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read(
        self,
        title: str,
        columns: list[str],
        user_id: str,
        parse: Callable[[dict[str, str]], T],
    ) -> list[T]:
        try:
            sheet = self._client.get_sheet(title, columns)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise sheets_error(f"Failed to read {title}", e)

        records = []
        for row in all_rows:
            record = _record(columns, row)
            if record["user_id"] != user_id:
                continue
            try:
                records.append(parse(record))
            except (ValueError, ArithmeticError) as e:
                logger.warning("sheet_row_skipped", sheet=title, error=str(e))
        return records

    @staticmethod
    def _parse_transaction(r: dict[str, str]) -> Transaction:
        return Transaction(
            id=UUID(r["id"]),
            type=TransactionType(r["type"]),
            amount=Decimal(r["amount"]),
            category=r["category"],
            description=r["description"],
            date=date.fromisoformat(r["date"]),
            is_recurring=_flag(r["is_recurring"]),
            status=RecordStatus(r["status"] or RecordStatus.ACTIVE.value),
            budget_id=_optional_uuid(r["budget_id"]),
        )

    @staticmethod
    def _parse_budget(r: dict[str, str]) -> BudgetSnapshot:
        return BudgetSnapshot(
            id=UUID(r["id"]),
            category=r["category"],
            allocated=Decimal(r["allocated"] or "0"),
            spent=Decimal(r["spent"] or "0"),
            savings_allocation=Decimal(r["savings_allocation"] or "0"),
            linked_savings_goal_id=_optional_uuid(r["linked_savings_goal_id"]),
        )

    @staticmethod
    def _parse_goal(r: dict[str, str]) -> SavingsGoal:
        return SavingsGoal(
            id=UUID(r["id"]),
            name=r["name"],
            target_amount=Decimal(r["target_amount"]),
            current_amount=Decimal(r["current_amount"] or "0"),
            target_date=_optional_date(r["target_date"]),
            status=GoalStatus(r["status"] or GoalStatus.ACTIVE.value),
        )

    @staticmethod
    def _parse_contribution(r: dict[str, str]) -> GoalContribution:
        return GoalContribution(
            goal_id=UUID(r["goal_id"]),
            added_amount=Decimal(r["added_amount"]),
            added_by=ContributionSource(r["added_by"] or ContributionSource.USER.value),
            recorded_at=datetime.fromisoformat(r["recorded_at"]),
        )

    @staticmethod
    def _parse_subscription(r: dict[str, str]) -> Subscription:
        return Subscription(
            id=UUID(r["id"]),
            name=r["name"],
            amount=Decimal(r["amount"] or "0"),
            frequency=BillingFrequency(r["frequency"] or BillingFrequency.MONTHLY.value),
            next_billing_date=_optional_date(r["next_billing_date"]),
            reminder_date=_optional_date(r["reminder_date"]),
            reminder_note=r["reminder_note"] or None,
            status=RecordStatus(r["status"] or RecordStatus.ACTIVE.value),
        )

    async def list_transactions(
        self,
        user_id: str,
        recurring_expenses_only: bool = False,
    ) -> list[Transaction]:
        transactions = self._read(
            self._client.settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            user_id,
            self._parse_transaction,
        )
        if recurring_expenses_only:
            transactions = [t for t in transactions if t.is_expense and t.is_recurring]
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def list_budgets(self, user_id: str) -> list[BudgetSnapshot]:
        return self._read(
            self._client.settings.budgets_sheet_name,
            BUDGET_COLUMNS,
            user_id,
            self._parse_budget,
        )

    async def list_goals(self, user_id: str) -> list[SavingsGoal]:
        return self._read(
            self._client.settings.goals_sheet_name,
            GOAL_COLUMNS,
            user_id,
            self._parse_goal,
        )

    async def list_contributions(self, user_id: str) -> list[GoalContribution]:
        contributions = self._read(
            self._client.settings.contributions_sheet_name,
            CONTRIBUTION_COLUMNS,
            user_id,
            self._parse_contribution,
        )
        return [c for c in contributions if c.added_amount > 0]

    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        return self._read(
            self._client.settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
            user_id,
            self._parse_subscription,
        )


class GoogleSheetsNotificationStorage(NotificationStorageInterface):
    """
    Google Sheets implementation of notification storage.

    `created_at` comes from the injected clock when one is given.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        clock: Optional[Clock] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._clock = clock

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_sheet(
            self._client.settings.notifications_sheet_name,
            NOTIFICATION_COLUMNS,
        )

    @staticmethod
    def _notification_to_row(n: PersistedNotification) -> list:
        return [
            str(n.id),
            n.user_id,
            n.type.value,
            n.title,
            n.message,
            str(n.reference_id) if n.reference_id else "",
            n.reference_type.value if n.reference_type else "",
            n.priority.value,
            n.link_path or "",
            n.link_label or "",
            str(n.is_read),
            str(n.is_dismissed),
            n.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_notification(row: list) -> PersistedNotification:
        r = _record(NOTIFICATION_COLUMNS, row)
        return PersistedNotification(
            id=UUID(r["id"]),
            user_id=r["user_id"],
            type=NotificationType(r["type"]),
            title=r["title"],
            message=r["message"],
            reference_id=_optional_uuid(r["reference_id"]),
            reference_type=ReferenceType(r["reference_type"]) if r["reference_type"] else None,
            priority=NotificationPriority(r["priority"]),
            link_path=r["link_path"] or None,
            link_label=r["link_label"] or None,
            is_read=_flag(r["is_read"]),
            is_dismissed=_flag(r["is_dismissed"]),
            created_at=datetime.fromisoformat(r["created_at"]),
        )

    def _owned_rows(self, user_id: str) -> list[tuple[int, list]]:
        """(sheet row number, raw row) for the user's notifications."""
        try:
            all_rows = self._sheet().get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise sheets_error("Failed to read notifications", e)

        user_col = NOTIFICATION_COLUMNS.index("user_id")
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)  # Row 1 is header
            if len(row) > user_col and row[user_col] == user_id
        ]

    def _set_flag(self, row_number: int, column: str, value: bool) -> None:
        col = NOTIFICATION_COLUMNS.index(column) + 1
        try:
            self._sheet().update_cell(row_number, col, str(value))
        except StorageError:
            raise
        except Exception as e:
            raise sheets_error(f"Failed to update {column}", e)

    async def exists_undismissed(
        self,
        user_id: str,
        reference_id: UUID,
        notification_type: NotificationType,
    ) -> bool:
        for _, row in self._owned_rows(user_id):
            r = _record(NOTIFICATION_COLUMNS, row)
            if (
                r["reference_id"] == str(reference_id)
                and r["type"] == notification_type.value
                and not _flag(r["is_dismissed"])
            ):
                return True
        return False

    @retry(**SHEETS_RETRY)
    async def insert(self, user_id: str, candidate: NotificationCandidate) -> UUID:
        created_at = self._clock.now() if self._clock else None
        notification = PersistedNotification.from_candidate(user_id, candidate, created_at)
        try:
            self._sheet().append_row(
                self._notification_to_row(notification),
                value_input_option="RAW",
            )
        except Exception as e:
            raise sheets_error("Failed to save notification", e)
        return notification.id

    async def list_notifications(
        self,
        user_id: str,
        include_dismissed: bool = False,
    ) -> list[PersistedNotification]:
        notifications = []
        for _, row in self._owned_rows(user_id):
            try:
                notification = self._row_to_notification(row)
            except ValueError as e:
                logger.warning("sheet_row_skipped", sheet="notifications", error=str(e))
                continue
            if include_dismissed or not notification.is_dismissed:
                notifications.append(notification)

        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    async def mark_read(self, user_id: str, notification_id: UUID) -> bool:
        for idx, row in self._owned_rows(user_id):
            if row and row[0] == str(notification_id):
                self._set_flag(idx, "is_read", True)
                return True
        return False

    async def mark_all_read(self, user_id: str) -> int:
        changed = 0
        for idx, row in self._owned_rows(user_id):
            if not _flag(_record(NOTIFICATION_COLUMNS, row)["is_read"]):
                self._set_flag(idx, "is_read", True)
                changed += 1
        return changed

    async def dismiss(self, user_id: str, notification_id: UUID) -> bool:
        for idx, row in self._owned_rows(user_id):
            if row and row[0] == str(notification_id):
                self._set_flag(idx, "is_dismissed", True)
                return True
        return False

    async def dismiss_all(self, user_id: str) -> int:
        changed = 0
        for idx, row in self._owned_rows(user_id):
            if not _flag(_record(NOTIFICATION_COLUMNS, row)["is_dismissed"]):
                self._set_flag(idx, "is_dismissed", True)
                changed += 1
        return changed


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_sheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )

    @staticmethod
    def _row_to_event(row: list) -> AuditEvent:
        r = _record(AUDIT_COLUMNS, row)
        return AuditEvent(
            event_id=UUID(r["event_id"]),
            timestamp=datetime.fromisoformat(r["timestamp"]),
            event_type=AuditEventType(r["event_type"]),
            severity=AuditSeverity(r["severity"]),
            user_id=r["user_id"] or None,
            entity_type=r["entity_type"] or None,
            entity_id=_optional_uuid(r["entity_id"]),
            correlation_id=_optional_uuid(r["correlation_id"]),
            description=r["description"],
            details=json.loads(r["details_json"]) if r["details_json"] else {},
            error_code=r["error_code"] or None,
            error_message=r["error_message"] or None,
            is_user_action=_flag(r["is_user_action"]),
        )

    def _all_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except Exception as e:
            raise sheets_error("Failed to get audit events", e)

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError as e:
                logger.warning("sheet_row_skipped", sheet="audit", error=str(e))
        return events

    @retry(**SHEETS_RETRY)
    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
        except Exception as e:
            raise sheets_error("Failed to write audit event", e)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
