"""
Notification Evaluation Pipeline

The I/O shell around the pure rule evaluator:

1. Resolve the signed-in user (abort the whole pass if there is none)
2. Fetch subscriptions, budgets, goals and recurring expenses concurrently
3. Evaluate the rules as of clock.now()
4. Hand the candidates to the dedup sink

A collection that fails to load is logged and treated as empty, so one
broken read never blocks the other rules. Interrupting a pass part-way is
safe: the next pass's dedup check inserts whatever was missed.
"""

import asyncio
from typing import Optional
from uuid import UUID

import structlog

from ledgerwise.audit import AuditLogger, create_correlation_id
from ledgerwise.models.finance import NotificationSources
from ledgerwise.notifications.evaluator import NotificationRuleEvaluator
from ledgerwise.notifications.sink import NotificationSink
from ledgerwise.services.clock import (
    Clock,
    NotAuthenticatedError,
    SessionProvider,
    SystemClock,
    require_user,
)
from ledgerwise.services.storage import (
    FinanceStorageInterface,
    NotificationStorageInterface,
)


class NotificationPipeline:
    """One evaluation pass: fetch, evaluate, dedup, persist."""

    def __init__(
        self,
        finance_storage: FinanceStorageInterface,
        notification_storage: NotificationStorageInterface,
        session: SessionProvider,
        clock: Optional[Clock] = None,
        evaluator: Optional[NotificationRuleEvaluator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._finance_storage = finance_storage
        self._session = session
        self._clock = clock or SystemClock()
        self._evaluator = evaluator or NotificationRuleEvaluator()
        self._audit_logger = audit_logger
        self._sink = NotificationSink(notification_storage, audit_logger)
        self._logger = structlog.get_logger(__name__)

    async def fetch_sources(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> NotificationSources:
        """Load the four record collections, tolerating individual failures."""
        names = ("subscriptions", "budgets", "goals", "recurring_expenses")
        results = await asyncio.gather(
            self._finance_storage.list_subscriptions(user_id),
            self._finance_storage.list_budgets(user_id),
            self._finance_storage.list_goals(user_id),
            self._finance_storage.list_transactions(user_id, recurring_expenses_only=True),
            return_exceptions=True,
        )

        loaded = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._logger.warning("notification_fetch_failed", collection=name)
                if self._audit_logger:
                    await self._audit_logger.log_fetch_failed(
                        user_id=user_id,
                        collection=name,
                        error=result,
                        correlation_id=correlation_id,
                    )
                continue
            loaded[name] = result

        return NotificationSources(**loaded)

    async def run_pass(self) -> int:
        """
        Run one evaluation pass for the signed-in user.

        Returns:
            Number of notifications inserted

        Raises:
            NotAuthenticatedError: Nobody is signed in; nothing was done
        """
        correlation_id = create_correlation_id()

        try:
            user_id = require_user(self._session)
        except NotAuthenticatedError:
            if self._audit_logger:
                await self._audit_logger.log_evaluation_aborted(
                    "no authenticated user", correlation_id
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_evaluation_started(user_id, correlation_id)

        sources = await self.fetch_sources(user_id, correlation_id)
        candidates = self._evaluator.evaluate(user_id, self._clock.now(), sources)
        inserted = await self._sink.persist(user_id, candidates, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_evaluation_completed(
                user_id=user_id,
                candidate_count=len(candidates),
                inserted_count=inserted,
                correlation_id=correlation_id,
            )

        return inserted


class NotificationScheduler:
    """
    Re-runs the pipeline on a fixed interval while a session is open.

    The first pass runs immediately. Overlapping passes from several
    schedulers are tolerated; dedup is the only guard.
    """

    def __init__(
        self,
        pipeline: NotificationPipeline,
        interval_seconds: float = 300,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._pipeline = pipeline
        self._interval = interval_seconds
        self._audit_logger = audit_logger
        self._task: Optional[asyncio.Task] = None
        self._logger = structlog.get_logger(__name__)
        self.passes_completed = 0

    async def run(self, max_passes: Optional[int] = None) -> None:
        """
        Loop until cancelled, signed out, or `max_passes` passes have run.
        """
        passes = 0
        while max_passes is None or passes < max_passes:
            try:
                await self._pipeline.run_pass()
            except NotAuthenticatedError:
                self._logger.info("notification_scheduler_stopped", reason="signed_out")
                return
            except Exception as e:
                self._logger.error("notification_pass_failed", error=type(e).__name__)
                if self._audit_logger:
                    await self._audit_logger.log_error("notification_pass_failed", e)
            else:
                self.passes_completed += 1
            passes += 1

            if max_passes is None or passes < max_passes:
                await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task:
        """Start the loop as a background task on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the loop; in-flight calls are abandoned."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
