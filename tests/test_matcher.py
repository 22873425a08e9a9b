"""
Tests for matching client groups against ledger entries.
"""

import pytest

from cxc_reconciler.models import ClientGroup, LedgerEntry, Transaction
from cxc_reconciler.reconciliation import (
    amounts_match,
    classify,
    find_match,
    group_by_client,
    rows_from_entries,
)
from cxc_reconciler.reconciliation.matcher import (
    client_id_from_description,
    dates_match,
    pending_description,
    row_for_group,
)


def entry(entry_id, amount, entry_date, account_id=8, movement="CR", description=""):
    return LedgerEntry(
        id=entry_id,
        description=description,
        auxiliary_id=7,
        account_id=account_id,
        movement_type=movement,
        entry_date=entry_date,
        amount=amount,
    )


@pytest.fixture
def groups():
    return group_by_client([
        Transaction(client_id=1, amount=100, date="2024-01-05"),
        Transaction(client_id=1, amount=50, date="2024-01-10"),
        Transaction(client_id=2, amount=75.5, date="2024-01-07"),
    ])


class TestAmountsAndDates:

    def test_within_tolerance(self):
        assert amounts_match(100.0, 100.005)
        assert amounts_match(100.0, 99.995)

    def test_tolerance_is_strict(self):
        assert not amounts_match(100.0, 100.01)
        assert not amounts_match(100.0, 100.02)

    def test_dates_compare_as_calendar_dates(self):
        assert dates_match("2024-01-10", "2024-01-10T00:00:00")
        assert not dates_match("2024-01-10T23:30:00-05:00", "2024-01-10")
        assert not dates_match("", "2024-01-10")


class TestFindMatch:

    def test_requires_credit_on_target_account(self, settings, groups):
        candidate = row_for_group(groups[1], settings)
        entries = [
            entry(1, 150.0, "2024-01-10", movement="DR"),
            entry(2, 150.0, "2024-01-10", account_id=9),
            entry(3, 150.0, "2024-01-11"),
        ]

        assert find_match(entries, candidate, target_account_id=8) is None

    def test_first_match_wins(self, settings, groups):
        candidate = row_for_group(groups[1], settings)
        entries = [
            entry(1, 150.004, "2024-01-10"),
            entry(2, 150.0, "2024-01-10"),
        ]

        assert find_match(entries, candidate, target_account_id=8).id == 1


class TestClassify:

    def test_unmatched_groups_are_pending(self, settings, groups):
        rows = classify(groups, [], settings)

        assert [row.client_id for row in rows] == [1, 2]
        assert all(row.is_pending for row in rows)

        first = rows[0]
        assert first.description == pending_description(1)
        assert first.accumulated_amount == 150.0
        assert first.entry_date == "2024-01-10"
        assert first.account_id == settings.cxc_account_id
        assert first.auxiliary_id == settings.auxiliary_id
        assert first.auxiliary_name == settings.auxiliary_name
        assert first.movement_type == "CR"

    def test_matched_group_takes_entry_id_and_description(self, settings, groups):
        entries = [entry(41, 150.0, "2024-01-10", description="Consolidado CxC cliente 1")]

        rows = classify(groups, entries, settings)

        assert rows[0].ledger_entry_id == 41
        assert rows[0].description == "Consolidado CxC cliente 1"
        assert rows[1].is_pending

    def test_entry_can_match_more_than_one_group(self, settings):
        groups = {
            1: ClientGroup(client_id=1),
            2: ClientGroup(client_id=2),
        }
        entries = [entry(5, 0.0, "0001-01-01")]

        rows = classify(groups, entries, settings)

        assert [row.ledger_entry_id for row in rows] == [5, 5]


class TestHistoryRows:

    def test_client_id_from_description(self):
        assert client_id_from_description("Consolidated CxC client 12") == 12
        assert client_id_from_description("Consolidado CxC cliente 7") == 7
        assert client_id_from_description("Pago recibido") is None
        assert client_id_from_description("") is None

    def test_only_credits_on_target_account(self, settings):
        entries = [
            entry(1, 10.0, "2024-01-01", description="Consolidated CxC client 3"),
            entry(2, 10.0, "2024-01-01", movement="DR"),
            entry(3, 10.0, "2024-01-01", account_id=9),
            entry(4, 20.0, "2024-01-02", description="Ajuste manual"),
        ]

        rows = rows_from_entries(entries, settings)

        assert [row.ledger_entry_id for row in rows] == [1, 4]
        assert rows[0].client_id == 3
        # Falls back to the entry's position
        assert rows[1].client_id == 4
        assert all(not row.is_pending for row in rows)

    def test_missing_fields_use_defaults(self, settings):
        bare = LedgerEntry(id=9, account_id=0, movement_type="", auxiliary_id=None)

        [row] = rows_from_entries([bare], settings)

        assert row.account_id == settings.cxc_account_id
        assert row.movement_type == "CR"
        assert row.auxiliary_id == settings.auxiliary_id
        assert row.description == "Entry 9"
        assert row.client_id == 1
