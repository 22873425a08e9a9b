"""Transaction models for the CxC reconciliation service."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, Union

CENT = Decimal("0.01")


def round_half_up(value: Union[Decimal, float]) -> float:
    """Round to the cent, half-up (2.675 -> 2.68), at any magnitude."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus the two cents
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass
class Transaction:
    """
    Canonical transaction record produced by the normalizer.
    Read-only input to the consolidation pipeline.
    """
    id: int = 0
    type: str = ""
    client_id: int = 0
    document: str = ""
    date: str = ""
    category_id: int = 0
    amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "client_id": self.client_id,
            "document": self.document,
            "date": self.date,
            "category_id": self.category_id,
            "amount": self.amount,
        }


@dataclass
class ClientGroup:
    """
    Per-client aggregate of transactions.

    The running total is kept as a Decimal so the sum does not depend on
    the order in which transactions arrive.
    """
    client_id: int
    total: Decimal = field(default_factory=Decimal)
    latest_date: date = date.min
    transaction_count: int = 0

    @property
    def total_amount(self) -> float:
        """Total rounded half-up to the cent."""
        return round_half_up(self.total)

    @property
    def entry_date(self) -> str:
        """Latest transaction date in YYYY-MM-DD form."""
        return self.latest_date.isoformat()
