"""
Posting Orchestrator - commits pending consolidated rows to the ledger.

Every post is attempted concurrently and independently; one failure never
cancels or blocks its siblings.
"""

import asyncio
from typing import Iterable, List

import structlog

from ..models import ConsolidatedRow, PostOutcome, PostingSummary
from ..integrations import LedgerClient

logger = structlog.get_logger()


class PostingOrchestrator:
    """Posts pending rows through the ledger client and tallies outcomes."""

    def __init__(self, ledger_client: LedgerClient):
        self.ledger_client = ledger_client

    async def post_pending(self, rows: Iterable[ConsolidatedRow]) -> PostingSummary:
        """
        Post every row whose ledger_entry_id is None.

        Args:
            rows: Consolidated rows; rows already posted are skipped

        Returns:
            PostingSummary with one outcome per attempted row, in input order
        """
        pending: List[ConsolidatedRow] = [row for row in rows if row.is_pending]

        if not pending:
            logger.info("No pending rows to post")
            return PostingSummary()

        logger.info("Posting pending rows", count=len(pending))

        results = await asyncio.gather(
            *(self.ledger_client.post_entry(row) for row in pending),
            return_exceptions=True,
        )

        summary = PostingSummary()
        for index, (row, result) in enumerate(zip(pending, results), start=1):
            if isinstance(result, BaseException):
                logger.error(
                    "Ledger post failed",
                    position=index,
                    client_id=row.client_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                summary.outcomes.append(PostOutcome(row=row, error=str(result) or type(result).__name__))
            else:
                logger.info(
                    "Ledger entry posted",
                    position=index,
                    client_id=row.client_id,
                    entry_id=result.entry_id,
                )
                summary.outcomes.append(PostOutcome(row=row, result=result))

        logger.info(
            "Posting batch finished",
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
        return summary
