"""
CxC Reconciliation Orchestrator - Main pipeline coordinator.

Orchestrates the full consolidation cycle:
1. Fetch existing ledger entries (fatal on failure)
2. Fetch raw transactions (non-fatal; degrades to zero pending rows)
3. Normalize and group transactions by client
4. Match groups against ledger entries
5. Post pending groups and reload everything
"""

import asyncio
from datetime import datetime
from typing import Any, List, Optional, Tuple

import structlog

from ..config import Settings, get_settings
from ..exceptions import ReconciliationError, WorkflowStateError
from ..ingestion import normalize
from ..integrations import LedgerClient
from ..models import (
    AuditAction,
    AuditEntry,
    LedgerEntry,
    PostingReport,
    PostingSummary,
    ReconciliationView,
    WorkflowState,
)
from ..utils.audit_logger import AuditLogger
from .grouping import group_by_client
from .matcher import classify, rows_from_entries
from .posting import PostingOrchestrator

logger = structlog.get_logger()

BUSY_STATES = (WorkflowState.LOADING, WorkflowState.POSTING)


class CxcReconciliationOrchestrator:
    """
    Main orchestrator for the CxC consolidation workflow.

    Owns the workflow state machine:
        IDLE -> LOADING -> READY
        READY (pending > 0) -> POSTING -> LOADING -> READY
    Loading or posting while another operation is running is rejected.
    """

    def __init__(
        self,
        ledger_client: LedgerClient,
        transaction_source: Any,
        settings: Optional[Settings] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.settings = settings or get_settings()
        self.ledger_client = ledger_client
        self.transaction_source = transaction_source
        self.poster = PostingOrchestrator(ledger_client)
        self.audit = audit or AuditLogger(settings=self.settings)

        self.state = WorkflowState.IDLE
        self.view: Optional[ReconciliationView] = None
        self.last_error: Optional[str] = None

    @property
    def pending_count(self) -> int:
        return self.view.pending_count if self.view else 0

    def _set_state(self, state: WorkflowState) -> None:
        if state != self.state:
            logger.debug("Workflow state change", previous=self.state.value, state=state.value)
        self.state = state

    def _resolve_range(
        self,
        date_from: Optional[str],
        date_to: Optional[str],
    ) -> Tuple[str, str]:
        if self.view is not None:
            default_from, default_to = self.view.date_from, self.view.date_to
        else:
            default_from = self.settings.default_date_from
            default_to = self.settings.default_date_to
        return date_from or default_from, date_to or default_to

    async def load(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> ReconciliationView:
        """
        Rebuild the consolidated view from scratch.

        Args:
            date_from: Ledger range start (YYYY-MM-DD)
            date_to: Ledger range end (YYYY-MM-DD)

        Returns:
            The new ReconciliationView

        Raises:
            WorkflowStateError: A load or post is already running
            ReconciliationError: The ledger could not be read
        """
        if self.state in BUSY_STATES:
            raise WorkflowStateError(
                f"Cannot load while {self.state.value}", state=self.state.value
            )
        date_from, date_to = self._resolve_range(date_from, date_to)
        return await self._reload(date_from, date_to)

    async def _reload(self, date_from: str, date_to: str) -> ReconciliationView:
        self._set_state(WorkflowState.LOADING)
        view: Optional[ReconciliationView] = None
        try:
            view = await self._run_pipeline(date_from, date_to)
        except ReconciliationError as e:
            self.last_error = str(e)
            raise
        finally:
            self.view = view
            self._set_state(WorkflowState.READY if view else WorkflowState.IDLE)

        self.last_error = None
        return view

    async def _run_pipeline(self, date_from: str, date_to: str) -> ReconciliationView:
        start = datetime.utcnow()
        logger.info("Loading CxC consolidation", date_from=date_from, date_to=date_to)

        entries_result, raw_result = await asyncio.gather(
            self.ledger_client.fetch_entries(
                date_from, date_to, self.settings.cxc_account_id
            ),
            self.transaction_source.fetch_all(),
            return_exceptions=True,
        )

        # Ledger read failures abort the pass
        if isinstance(entries_result, BaseException):
            self.audit.log(AuditEntry(
                action=AuditAction.LEDGER_READ_FAILED,
                message="Ledger entries could not be loaded",
                success=False,
                error_message=str(entries_result),
            ))
            raise entries_result
        entries: List[LedgerEntry] = entries_result

        self.audit.log(AuditEntry(
            action=AuditAction.LEDGER_ENTRIES_LOADED,
            message=f"Loaded {len(entries)} ledger entries",
            details={"date_from": date_from, "date_to": date_to},
        ))

        # Transaction source failures degrade to existing entries only
        source_available = True
        if isinstance(raw_result, ReconciliationError):
            source_available = False
            self.audit.log(AuditEntry(
                action=AuditAction.TRANSACTION_SOURCE_UNAVAILABLE,
                message="Transactions could not be loaded; showing existing entries only",
                success=False,
                error_message=str(raw_result),
            ))
            raw_result = []
        elif isinstance(raw_result, BaseException):
            raise raw_result

        transactions = normalize(raw_result)
        if source_available:
            self.audit.log(AuditEntry(
                action=AuditAction.TRANSACTIONS_LOADED,
                message=f"Loaded {len(transactions)} transactions",
            ))

        groups = group_by_client(transactions)
        classified = classify(groups, entries, self.settings)

        for row in classified:
            if row.is_pending:
                self.audit.log(AuditEntry(
                    action=AuditAction.GROUP_PENDING,
                    client_id=row.client_id,
                    message=f"Client {row.client_id} requires posting",
                    details={"amount": row.accumulated_amount, "entry_date": row.entry_date},
                ))
            else:
                self.audit.log(AuditEntry(
                    action=AuditAction.GROUP_MATCHED,
                    client_id=row.client_id,
                    ledger_entry_id=row.ledger_entry_id,
                    message=f"Client {row.client_id} already posted",
                ))

        history = rows_from_entries(entries, self.settings)
        pending = [row for row in classified if row.is_pending]

        view = ReconciliationView(
            date_from=date_from,
            date_to=date_to,
            rows=history + pending,
            classified=classified,
            transaction_source_available=source_available,
            transaction_count=len(transactions),
        )

        logger.info(
            "CxC consolidation loaded",
            posted=len(history),
            pending=len(pending),
            total_rows=len(view.rows),
            elapsed_ms=int((datetime.utcnow() - start).total_seconds() * 1000),
        )
        return view

    async def post(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> PostingReport:
        """
        Post every pending row, wait for the ledger to settle, then reload.

        Returns:
            PostingReport; a no-op summary when nothing is pending

        Raises:
            WorkflowStateError: A load or post is already running
        """
        if self.state in BUSY_STATES:
            raise WorkflowStateError(
                f"Cannot post while {self.state.value}", state=self.state.value
            )

        if self.state != WorkflowState.READY or not self.view or not self.view.pending:
            logger.info("Nothing to post", state=self.state.value)
            return PostingReport(summary=PostingSummary(), view=self.view)

        date_from, date_to = self._resolve_range(date_from, date_to)
        pending = self.view.pending

        self._set_state(WorkflowState.POSTING)
        completed = False
        try:
            summary = await self.poster.post_pending(pending)
            self._audit_outcomes(summary)

            logger.info("Waiting before reload", delay=self.settings.reload_delay_seconds)
            await asyncio.sleep(self.settings.reload_delay_seconds)
            completed = True
        finally:
            if not completed:
                self._set_state(WorkflowState.READY)

        self.audit.log(AuditEntry(
            action=AuditAction.RELOAD_TRIGGERED,
            message="Reloading after posting",
            details={"succeeded": summary.succeeded, "failed": summary.failed},
        ))

        try:
            view = await self._reload(date_from, date_to)
        except ReconciliationError as e:
            logger.error("Reload after posting failed", error=str(e))
            return PostingReport(summary=summary, view=None, reload_error=str(e))

        return PostingReport(summary=summary, view=view)

    def _audit_outcomes(self, summary: PostingSummary) -> None:
        for outcome in summary.outcomes:
            if outcome.succeeded:
                self.audit.log(AuditEntry(
                    action=AuditAction.ENTRY_POSTED,
                    client_id=outcome.row.client_id,
                    message=f"Posted consolidated entry for client {outcome.row.client_id}",
                    details={
                        "entry_id": outcome.result.entry_id,
                        "amount": outcome.row.accumulated_amount,
                        "entry_date": outcome.row.entry_date,
                    },
                ))
            else:
                self.audit.log(AuditEntry(
                    action=AuditAction.ENTRY_POST_FAILED,
                    client_id=outcome.row.client_id,
                    message=f"Failed to post entry for client {outcome.row.client_id}",
                    success=False,
                    error_message=outcome.error,
                ))

    async def close(self) -> None:
        """Close the underlying HTTP clients."""
        await self.ledger_client.close()
        await self.transaction_source.close()
