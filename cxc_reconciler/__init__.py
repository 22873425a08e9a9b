"""CxC consolidation: group receivables per client and post them to the ledger."""

__version__ = "1.0.0"
