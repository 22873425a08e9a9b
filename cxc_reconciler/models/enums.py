"""Enumerations for the CxC reconciliation service."""

from enum import Enum


class MovementType(str, Enum):
    """Movement type of a ledger line."""
    CREDIT = "CR"
    DEBIT = "DR"


class WorkflowState(str, Enum):
    """
    State of the consolidation workflow.

    IDLE: Nothing loaded (initial state, or after a failed load)
    LOADING: Fetching transactions and ledger entries
    READY: View available, possibly with pending rows
    POSTING: Pending rows are being written to the ledger
    """
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    POSTING = "posting"


class RowStatus(str, Enum):
    """Whether a consolidated row already exists in the ledger."""
    POSTED = "posted"
    PENDING = "pending"


class AuditAction(str, Enum):
    """Type of audit action."""
    TRANSACTIONS_LOADED = "transactions_loaded"
    TRANSACTION_SOURCE_UNAVAILABLE = "transaction_source_unavailable"
    LEDGER_ENTRIES_LOADED = "ledger_entries_loaded"
    LEDGER_READ_FAILED = "ledger_read_failed"
    GROUP_MATCHED = "group_matched"
    GROUP_PENDING = "group_pending"
    ENTRY_POSTED = "entry_posted"
    ENTRY_POST_FAILED = "entry_post_failed"
    RELOAD_TRIGGERED = "reload_triggered"
