"""
Main Orchestrator for Ledgerwise

Ties the pure engines to storage, the session and the clock, and defines
the two flows the application shell uses:
1. Reporting (fetch ledger → aggregate → summary)
2. Notifications (fetch → evaluate → dedup → persist, on a schedule)

DESIGN DECISION: This is the only layer that reads the clock or the
session. Everything below it receives "now" and the user id as arguments.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Union

import structlog

from ledgerwise.analytics import budget_totals, compute_stats
from ledgerwise.audit import AuditLogger
from ledgerwise.config import get_settings
from ledgerwise.models.finance import FinanceSnapshot
from ledgerwise.models.summary import (
    BudgetTotals,
    DateRange,
    FinancialSummary,
    ReportingPeriod,
)
from ledgerwise.notifications import (
    NotificationInbox,
    NotificationPipeline,
    NotificationRuleEvaluator,
    NotificationScheduler,
    default_rules,
)
from ledgerwise.services.clock import (
    Clock,
    SessionProvider,
    StaticSession,
    SystemClock,
    require_user,
)
from ledgerwise.services.storage import (
    FinanceStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
    GoogleSheetsNotificationStorage,
    InMemoryFinanceStorage,
    InMemoryNotificationStorage,
    NotificationStorageInterface,
)


logger = structlog.get_logger(__name__)


class ReportingFlow:
    """
    Orchestrates the dashboard summary.

    Flow:
    1. Resolve the signed-in user
    2. Fetch ledger, budgets, goals and contributions concurrently
    3. Aggregate for the requested period as of clock.now()
    """

    def __init__(
        self,
        finance_storage: FinanceStorageInterface,
        session: SessionProvider,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = finance_storage
        self._session = session
        self._clock = clock or SystemClock()
        self._audit_logger = audit_logger

    async def load_snapshot(self, user_id: str) -> FinanceSnapshot:
        transactions, budgets, goals, contributions = await asyncio.gather(
            self._storage.list_transactions(user_id),
            self._storage.list_budgets(user_id),
            self._storage.list_goals(user_id),
            self._storage.list_contributions(user_id),
        )
        return FinanceSnapshot(
            transactions=transactions,
            budgets=budgets,
            goals=goals,
            contributions=contributions,
        )

    async def summary(
        self,
        period: Union[ReportingPeriod, str, None] = None,
        window: Optional[DateRange] = None,
    ) -> FinancialSummary:
        """
        Financial summary for the signed-in user.

        Args:
            period: Period keyword; the configured default when omitted
            window: Explicit range, overriding `period`
        """
        user_id = require_user(self._session)
        period = period or get_settings().app.default_period

        snapshot = await self.load_snapshot(user_id)
        summary = compute_stats(snapshot, self._clock.now(), period=period, window=window)

        if self._audit_logger:
            await self._audit_logger.log_stats_computed(
                user_id=user_id,
                period="custom" if window else str(getattr(period, "value", period)),
                transaction_count=len(snapshot.transactions),
            )
        return summary

    async def budget_overview(self) -> BudgetTotals:
        """Allocation totals against this month's income."""
        user_id = require_user(self._session)
        budgets, transactions = await asyncio.gather(
            self._storage.list_budgets(user_id),
            self._storage.list_transactions(user_id),
        )
        return budget_totals(budgets, transactions, self._clock.now())


@dataclass
class AppComponents:
    """Everything the application shell needs, wired together."""

    reporting: ReportingFlow
    pipeline: NotificationPipeline
    scheduler: NotificationScheduler
    inbox: NotificationInbox
    finance_storage: FinanceStorageInterface
    notification_storage: NotificationStorageInterface
    session: SessionProvider
    clock: Clock


def create_app_components(
    use_storage: bool = True,
    session: Optional[SessionProvider] = None,
    clock: Optional[Clock] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Falls back to in-memory storage when False or
                    when Sheets is not configured.
        session: Source of the signed-in user id
        clock: Source of "now"; the system clock by default
    """
    session = session or StaticSession()
    clock = clock or SystemClock()
    notification_settings = get_settings().notifications

    finance_storage: FinanceStorageInterface
    notification_storage: NotificationStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.connect()
            finance_storage = GoogleSheetsFinanceStorage(sheets_client)
            notification_storage = GoogleSheetsNotificationStorage(sheets_client, clock)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            use_storage = False

    if not use_storage:
        finance_storage = InMemoryFinanceStorage()
        notification_storage = InMemoryNotificationStorage(clock)
        audit_logger = AuditLogger()  # Local-only logging

    pipeline = NotificationPipeline(
        finance_storage=finance_storage,
        notification_storage=notification_storage,
        session=session,
        clock=clock,
        evaluator=NotificationRuleEvaluator(default_rules(notification_settings)),
        audit_logger=audit_logger,
    )

    return AppComponents(
        reporting=ReportingFlow(finance_storage, session, clock, audit_logger),
        pipeline=pipeline,
        scheduler=NotificationScheduler(
            pipeline,
            interval_seconds=notification_settings.evaluation_interval_seconds,
            audit_logger=audit_logger,
        ),
        inbox=NotificationInbox(notification_storage, session, audit_logger),
        finance_storage=finance_storage,
        notification_storage=notification_storage,
        session=session,
        clock=clock,
    )
