"""Tests for the Google Sheets backend, with a mocked sheets client."""

import asyncio
from datetime import datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from gspread.exceptions import APIError

from ledgerwise.models.notification import (
    NotificationCandidate,
    NotificationPriority,
    NotificationType,
    PersistedNotification,
)
from ledgerwise.services.clock import FixedClock
from ledgerwise.services.storage import (
    GoogleSheetsFinanceStorage,
    GoogleSheetsNotificationStorage,
    StorageError,
    StorageErrorCode,
)

HEADER = ["header"]


def client_with_rows(rows):
    client = MagicMock()
    client.get_sheet.return_value.get_all_values.return_value = [HEADER] + rows
    return client


def api_error(status):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = {
        "error": {"code": status, "message": "request failed", "status": "FAILED"},
    }
    return APIError(response)


class TestGoogleSheetsFinanceStorage:
    """Tests for reading finance records from Sheets."""

    def test_reads_only_the_users_rows(self):
        """Test row parsing and user scoping."""
        rows = [
            [str(uuid4()), "user-1", "expense", "45.00", "utilities", "Internet",
             "2024-01-22", "TRUE", "active", ""],
            [str(uuid4()), "user-2", "income", "999", "salary", "", "2024-01-01",
             "FALSE", "", ""],
            [str(uuid4()), "user-1", "income", "1500", "salary", "Salary", "2024-01-01",
             "FALSE"],
        ]
        storage = GoogleSheetsFinanceStorage(client_with_rows(rows))

        transactions = asyncio.run(storage.list_transactions("user-1"))

        assert [t.category for t in transactions] == ["utilities", "salary"]
        assert transactions[0].is_recurring
        assert transactions[1].budget_id is None

    def test_recurring_expenses_only(self):
        """Test the recurring expense filter."""
        rows = [
            [str(uuid4()), "user-1", "expense", "45", "utilities", "", "2024-01-22", "true", "", ""],
            [str(uuid4()), "user-1", "expense", "30", "food", "", "2024-01-21", "false", "", ""],
        ]
        storage = GoogleSheetsFinanceStorage(client_with_rows(rows))

        recurring = asyncio.run(storage.list_transactions("user-1", recurring_expenses_only=True))

        assert [t.category for t in recurring] == ["utilities"]

    def test_malformed_rows_are_skipped(self):
        """Test that one bad row does not fail the read."""
        rows = [
            [str(uuid4()), "user-1", "Food", "not-a-number", "0", "0", ""],
            [str(uuid4()), "user-1", "Fun", "100", "85", "", ""],
        ]
        storage = GoogleSheetsFinanceStorage(client_with_rows(rows))

        budgets = asyncio.run(storage.list_budgets("user-1"))

        assert [b.category for b in budgets] == ["Fun"]
        assert budgets[0].percent_spent == pytest.approx(85.0)

    def test_api_failure_raises_storage_error(self):
        """Test that sheet access errors surface as StorageError."""
        client = MagicMock()
        client.get_sheet.side_effect = RuntimeError("quota")
        storage = GoogleSheetsFinanceStorage(client)

        with pytest.raises(StorageError):
            asyncio.run(storage.list_goals("user-1"))


class TestGoogleSheetsNotificationStorage:
    """Tests for notification rows."""

    def test_row_round_trip(self):
        """Test that a stored notification reads back unchanged."""
        notification = PersistedNotification.from_candidate(
            "user-1",
            NotificationCandidate(
                type=NotificationType.BUDGET_WARNING,
                title="🚨 Food budget exceeded!",
                message="You've spent $200 of $200 (100%)",
                reference_id=uuid4(),
                priority=NotificationPriority.URGENT,
                link_path="/budget",
            ),
            datetime(2024, 1, 20, 9, 30),
        )

        row = GoogleSheetsNotificationStorage._notification_to_row(notification)

        assert GoogleSheetsNotificationStorage._row_to_notification(row) == notification

    def test_exists_undismissed(self):
        """Test the dedup lookup against sheet rows."""
        ref = uuid4()
        rows = [
            [str(uuid4()), "user-1", "budget_warning", "t", "m", str(ref), "budget",
             "high", "", "", "False", "True", "2024-01-19T08:00:00"],
            [str(uuid4()), "user-1", "budget_warning", "t", "m", str(ref), "budget",
             "high", "", "", "False", "False", "2024-01-20T08:00:00"],
        ]
        storage = GoogleSheetsNotificationStorage(client_with_rows(rows))

        assert asyncio.run(storage.exists_undismissed("user-1", ref, NotificationType.BUDGET_WARNING))
        assert not asyncio.run(storage.exists_undismissed("user-1", ref, NotificationType.GOAL_AT_RISK))
        assert not asyncio.run(storage.exists_undismissed("user-2", ref, NotificationType.BUDGET_WARNING))

    def test_insert_uses_the_injected_clock(self):
        """Test that created_at comes from the clock, not the system time."""
        client = client_with_rows([])
        clock = FixedClock(datetime(2024, 1, 20, 9, 30))
        storage = GoogleSheetsNotificationStorage(client, clock)
        candidate = NotificationCandidate(
            type=NotificationType.BUDGET_WARNING,
            title="⚠️ Food at 90%",
            message="Only $20 remaining in this budget",
            reference_id=uuid4(),
        )

        notification_id = asyncio.run(storage.insert("user-1", candidate))

        row = client.get_sheet.return_value.append_row.call_args.args[0]
        assert row[0] == str(notification_id)
        assert row[-1] == "2024-01-20T09:30:00"


class TestSheetsErrorCodes:
    """Tests for mapping Sheets API failures onto storage error codes."""

    @pytest.mark.parametrize("status, code", [
        (403, StorageErrorCode.PERMISSION_DENIED),
        (404, StorageErrorCode.NOT_FOUND),
        (429, StorageErrorCode.RATE_LIMITED),
        (503, StorageErrorCode.UNAVAILABLE),
        (400, None),
    ])
    def test_api_status_becomes_code(self, status, code):
        """Test that the HTTP status of a failed read is kept as the error code."""
        client = MagicMock()
        client.get_sheet.return_value.get_all_values.side_effect = api_error(status)
        storage = GoogleSheetsFinanceStorage(client)

        with pytest.raises(StorageError) as exc_info:
            asyncio.run(storage.list_budgets("user-1"))

        assert exc_info.value.code == (code.value if code else None)

    def test_flag_update_failure_is_wrapped(self):
        """Test that a failed cell update surfaces as a coded StorageError."""
        notification_id = uuid4()
        rows = [
            [str(notification_id), "user-1", "budget_warning", "t", "m", "", "",
             "high", "", "", "False", "False", "2024-01-20T08:00:00"],
        ]
        client = client_with_rows(rows)
        client.get_sheet.return_value.update_cell.side_effect = api_error(403)
        storage = GoogleSheetsNotificationStorage(client)

        with pytest.raises(StorageError) as exc_info:
            asyncio.run(storage.mark_read("user-1", notification_id))

        assert exc_info.value.code == "permission_denied"
