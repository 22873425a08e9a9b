"""CxC consolidation and reconciliation components."""

from .grouping import group_by_client
from .matcher import amounts_match, classify, find_match, rows_from_entries
from .posting import PostingOrchestrator
from .orchestrator import CxcReconciliationOrchestrator

__all__ = [
    "group_by_client",
    "amounts_match",
    "classify",
    "find_match",
    "rows_from_entries",
    "PostingOrchestrator",
    "CxcReconciliationOrchestrator",
]
