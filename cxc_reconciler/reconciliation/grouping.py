"""
Grouping/aggregation of normalized transactions per client.
"""

from decimal import Decimal
from typing import Dict, Iterable

import structlog

from ..ingestion.dates import coerce_date
from ..models import ClientGroup, Transaction

logger = structlog.get_logger()


def group_by_client(transactions: Iterable[Transaction]) -> Dict[int, ClientGroup]:
    """
    Aggregate transactions by client id in a single pass.

    Each group carries the exact total and the latest transaction date.
    Transactions with unparseable dates still count toward the total but
    leave latest_date untouched. The result does not depend on input order.
    """
    groups: Dict[int, ClientGroup] = {}

    for txn in transactions:
        group = groups.get(txn.client_id)
        if group is None:
            group = groups[txn.client_id] = ClientGroup(client_id=txn.client_id)

        group.total += Decimal(str(txn.amount))
        group.transaction_count += 1

        txn_date = coerce_date(txn.date)
        if txn_date is not None and txn_date > group.latest_date:
            group.latest_date = txn_date

    logger.info(
        "Transactions grouped by client",
        clients=len(groups),
        transactions=sum(g.transaction_count for g in groups.values()),
    )
    return groups
