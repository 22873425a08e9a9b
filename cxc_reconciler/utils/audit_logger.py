"""
Audit logging for consolidation and posting decisions.
"""

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog

from ..config import Settings, get_settings
from ..models import AuditEntry

logger = structlog.get_logger()


class AuditLogger:
    """
    Bounded in-memory trail of load, match and posting decisions.
    The oldest entries are dropped past max_entries; export_to_file
    writes a JSON snapshot to reports_dir.
    """

    def __init__(self, settings: Optional[Settings] = None, max_entries: int = 5000):
        self.entries: List[AuditEntry] = []
        self.settings = settings or get_settings()
        self.max_entries = max_entries

    def log(self, entry: AuditEntry) -> None:
        """Record a decision and mirror it to the structured log."""
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]

        logger.info(
            entry.message,
            action=entry.action.value,
            client_id=entry.client_id,
            ledger_entry_id=entry.ledger_entry_id,
            success=entry.success,
        )

    def get_entries(
        self,
        action_filter: Optional[str] = None,
        client_id: Optional[int] = None,
        success_only: bool = False,
    ) -> List[AuditEntry]:
        entries = self.entries

        if action_filter:
            entries = [e for e in entries if e.action.value == action_filter]

        if client_id is not None:
            entries = [e for e in entries if e.client_id == client_id]

        if success_only:
            entries = [e for e in entries if e.success]

        return entries

    def export_to_file(self, output_path: Optional[Path] = None) -> Path:
        """Write every retained entry to a JSON report and return its path."""
        if output_path is None:
            stamp = datetime.utcnow().strftime("%Y%m%dT%H%M%S")
            output_path = self.settings.reports_dir / f"audit_cxc_{stamp}.json"

        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "exported_at": datetime.utcnow().isoformat(),
            "total_entries": len(self.entries),
            "entries": [entry_to_dict(e) for e in self.entries],
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info("Audit log exported", path=str(output_path))
        return output_path

    def summary(self) -> dict:
        """Counts per action plus success/error totals."""
        action_counts = Counter(e.action.value for e in self.entries)
        success_count = sum(1 for e in self.entries if e.success)

        return {
            "total_entries": len(self.entries),
            "success_count": success_count,
            "error_count": len(self.entries) - success_count,
            "action_counts": dict(action_counts),
        }


def entry_to_dict(entry: AuditEntry) -> dict:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "action": entry.action.value,
        "client_id": entry.client_id,
        "ledger_entry_id": entry.ledger_entry_id,
        "message": entry.message,
        "details": entry.details,
        "success": entry.success,
        "error_message": entry.error_message,
    }
