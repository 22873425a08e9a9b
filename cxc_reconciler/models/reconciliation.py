"""Reconciliation result models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from uuid import uuid4

from .enums import AuditAction
from .ledger import ConsolidatedRow, PostResult
from .transaction import round_half_up


@dataclass
class PostOutcome:
    """Result of posting a single pending row."""
    row: ConsolidatedRow
    result: Optional[PostResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class PostingSummary:
    """Aggregated outcome of a posting batch."""
    outcomes: List[PostOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def message(self) -> str:
        """User-facing summary of the batch."""
        if self.attempted == 0:
            return "No pending rows to post."
        if self.failed == 0:
            return f"{self.succeeded} entries posted successfully."
        if self.succeeded > 0:
            return f"{self.succeeded} succeeded, {self.failed} failed."
        return "Every entry failed to post."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "message": self.message,
            "outcomes": [
                {
                    "client_id": o.row.client_id,
                    "entry_date": o.row.entry_date,
                    "amount": o.row.accumulated_amount,
                    "succeeded": o.succeeded,
                    "entry_id": o.result.entry_id if o.result else None,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


@dataclass
class ReconciliationView:
    """The full consolidated data set shown to the user."""
    date_from: str
    date_to: str

    # History rows (existing entries) followed by pending rows
    rows: List[ConsolidatedRow] = field(default_factory=list)

    # One classified row per live client group
    classified: List[ConsolidatedRow] = field(default_factory=list)

    transaction_source_available: bool = True
    transaction_count: int = 0
    loaded_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def pending(self) -> List[ConsolidatedRow]:
        return [row for row in self.classified if row.is_pending]

    @property
    def posted_count(self) -> int:
        return sum(1 for row in self.rows if not row.is_pending)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def total_amount(self) -> float:
        total = sum((Decimal(str(row.accumulated_amount)) for row in self.rows), Decimal())
        return round_half_up(total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date_from": self.date_from,
            "date_to": self.date_to,
            "rows": [row.to_dict() for row in self.rows],
            "pending": [row.to_dict() for row in self.pending],
            "transaction_source_available": self.transaction_source_available,
            "transaction_count": self.transaction_count,
            "loaded_at": self.loaded_at.isoformat(),
            "summary": {
                "total_rows": len(self.rows),
                "posted": self.posted_count,
                "pending": self.pending_count,
                "total_amount": self.total_amount,
            },
        }


@dataclass
class PostingReport:
    """Posting summary plus the view rebuilt after the reload."""
    summary: PostingSummary
    view: Optional[ReconciliationView] = None
    reload_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "view": self.view.to_dict() if self.view else None,
            "reload_error": self.reload_error,
        }


@dataclass
class AuditEntry:
    """An entry in the audit log."""
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    action: AuditAction = AuditAction.TRANSACTIONS_LOADED

    # Context
    client_id: Optional[int] = None
    ledger_entry_id: Optional[int] = None

    # Details
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    # Outcome
    success: bool = True
    error_message: Optional[str] = None
