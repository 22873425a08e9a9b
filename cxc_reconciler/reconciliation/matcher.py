"""
Reconciliation Matcher.

Decides, per client group, whether a matching ledger entry already exists,
and turns both client groups and existing ledger entries into consolidated
rows for display and posting.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from ..config import Settings, get_settings
from ..ingestion.dates import canonical_date
from ..models import ClientGroup, ConsolidatedRow, LedgerEntry, MovementType

logger = structlog.get_logger()

AMOUNT_TOLERANCE = 0.01

# Descriptions embed the client id ("Consolidated CxC client 12",
# "Consolidado CxC cliente 12")
CLIENT_ID_PATTERN = re.compile(r"\bcliente?\s+(\d+)", re.IGNORECASE)


def pending_description(client_id: int) -> str:
    return f"Consolidated CxC client {client_id}"


def amounts_match(a: float, b: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """True when two amounts differ by strictly less than the tolerance."""
    return abs(float(a) - float(b)) < tolerance


def dates_match(a: str, b: str) -> bool:
    """Compare two date strings as calendar dates."""
    left = canonical_date(a)
    right = canonical_date(b)
    if left is None or right is None:
        return False
    return left == right


def find_match(
    entries: Iterable[LedgerEntry],
    candidate: ConsolidatedRow,
    target_account_id: int,
    tolerance: float = AMOUNT_TOLERANCE,
) -> Optional[LedgerEntry]:
    """
    Return the first entry matching the candidate, or None.

    An entry matches when it is a credit on the target account with the
    candidate's amount (within tolerance) and calendar date.
    """
    for entry in entries:
        if (
            entry.account_id == target_account_id
            and entry.movement_type == MovementType.CREDIT.value
            and amounts_match(entry.amount, candidate.accumulated_amount, tolerance)
            and dates_match(entry.entry_date, candidate.entry_date)
        ):
            return entry
    return None


def row_for_group(group: ClientGroup, settings: Settings) -> ConsolidatedRow:
    """Pending row for a client group."""
    return ConsolidatedRow(
        ledger_entry_id=None,
        client_id=group.client_id,
        description=pending_description(group.client_id),
        auxiliary_id=settings.auxiliary_id,
        auxiliary_name=settings.auxiliary_name,
        account_id=settings.cxc_account_id,
        movement_type=MovementType.CREDIT.value,
        entry_date=group.entry_date,
        accumulated_amount=group.total_amount,
    )


def classify(
    groups: Dict[int, ClientGroup],
    entries: Sequence[LedgerEntry],
    settings: Optional[Settings] = None,
) -> List[ConsolidatedRow]:
    """
    Classify every client group as already posted or pending.

    Args:
        groups: Client groups keyed by client id
        entries: Existing ledger entries, in server order
        settings: Supplies target account and auxiliary defaults

    Returns:
        One row per group; matched rows carry the entry id and description
    """
    settings = settings or get_settings()
    rows = []

    for group in groups.values():
        row = row_for_group(group, settings)
        match = find_match(
            entries, row, settings.cxc_account_id, settings.amount_tolerance
        )

        if match is not None:
            row.ledger_entry_id = match.id
            row.description = match.description or row.description
            logger.debug(
                "Client group already posted",
                client_id=group.client_id,
                ledger_entry_id=match.id,
            )
        else:
            logger.debug(
                "Client group requires posting",
                client_id=group.client_id,
                amount=row.accumulated_amount,
                entry_date=row.entry_date,
            )

        rows.append(row)

    return rows


def client_id_from_description(description: str) -> Optional[int]:
    match = CLIENT_ID_PATTERN.search(description or "")
    return int(match.group(1)) if match else None


def rows_from_entries(
    entries: Sequence[LedgerEntry],
    settings: Optional[Settings] = None,
) -> List[ConsolidatedRow]:
    """
    Turn existing credit entries on the target account into history rows.

    The client id is recovered from the description; when absent, the
    entry's 1-based position stands in for it.
    """
    settings = settings or get_settings()
    rows = []

    for index, entry in enumerate(entries):
        # Entries missing account or movement still belong to the filtered query
        if entry.account_id and entry.account_id != settings.cxc_account_id:
            continue
        if entry.movement_type and entry.movement_type != MovementType.CREDIT.value:
            continue

        client_id = client_id_from_description(entry.description)
        if client_id is None:
            client_id = index + 1

        rows.append(ConsolidatedRow(
            ledger_entry_id=entry.id,
            client_id=client_id,
            description=entry.description or f"Entry {entry.id}",
            auxiliary_id=entry.auxiliary_id or settings.auxiliary_id,
            auxiliary_name=settings.auxiliary_name,
            account_id=entry.account_id or settings.cxc_account_id,
            movement_type=entry.movement_type or MovementType.CREDIT.value,
            entry_date=entry.entry_date,
            accumulated_amount=entry.amount,
        ))

    return rows
