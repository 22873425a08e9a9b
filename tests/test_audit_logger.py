"""
Tests for the audit trail.
"""

import json

import pytest

from cxc_reconciler.models import AuditAction, AuditEntry
from cxc_reconciler.utils import AuditLogger
from cxc_reconciler.utils.audit_logger import entry_to_dict


@pytest.fixture
def audit(settings):
    return AuditLogger(settings=settings, max_entries=3)


class TestAuditLogger:

    def test_keeps_most_recent_entries(self, audit):
        for client_id in range(5):
            audit.log(AuditEntry(action=AuditAction.GROUP_PENDING, client_id=client_id))

        assert [e.client_id for e in audit.entries] == [2, 3, 4]

    def test_filters(self, audit):
        audit.log(AuditEntry(action=AuditAction.ENTRY_POSTED, client_id=1))
        audit.log(AuditEntry(action=AuditAction.ENTRY_POST_FAILED, client_id=1, success=False))
        audit.log(AuditEntry(action=AuditAction.ENTRY_POSTED, client_id=2))

        assert len(audit.get_entries(action_filter="entry_posted")) == 2
        assert len(audit.get_entries(client_id=1)) == 2
        assert len(audit.get_entries(client_id=1, success_only=True)) == 1

        summary = audit.summary()
        assert summary["error_count"] == 1
        assert summary["action_counts"] == {"entry_posted": 2, "entry_post_failed": 1}

    def test_export(self, audit, tmp_path):
        audit.log(AuditEntry(action=AuditAction.RELOAD_TRIGGERED, details={"succeeded": 2}))

        path = audit.export_to_file(tmp_path / "audit.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["total_entries"] == 1
        assert data["entries"][0] == entry_to_dict(audit.entries[0])
        assert data["entries"][0]["details"] == {"succeeded": 2}
