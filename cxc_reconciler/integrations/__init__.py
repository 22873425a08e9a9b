"""External integrations for the CxC reconciliation service."""

from .ledger_client import LedgerClient, extract_id
from .transaction_source import TransactionSourceClient, StoreTransactionSource
from .entries_api import AccountingEntriesClient

__all__ = [
    "LedgerClient",
    "extract_id",
    "TransactionSourceClient",
    "StoreTransactionSource",
    "AccountingEntriesClient",
]
