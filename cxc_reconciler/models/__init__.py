"""Data models for the CxC reconciliation service."""

from .enums import (
    MovementType,
    WorkflowState,
    RowStatus,
    AuditAction,
)
from .transaction import (
    Transaction,
    ClientGroup,
)
from .ledger import (
    LedgerEntry,
    ConsolidatedRow,
    PostResult,
)
from .reconciliation import (
    PostOutcome,
    PostingSummary,
    ReconciliationView,
    PostingReport,
    AuditEntry,
)

__all__ = [
    # Enums
    "MovementType",
    "WorkflowState",
    "RowStatus",
    "AuditAction",
    # Transactions
    "Transaction",
    "ClientGroup",
    # Ledger
    "LedgerEntry",
    "ConsolidatedRow",
    "PostResult",
    # Reconciliation
    "PostOutcome",
    "PostingSummary",
    "ReconciliationView",
    "PostingReport",
    "AuditEntry",
]
