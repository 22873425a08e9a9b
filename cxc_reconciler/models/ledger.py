"""Ledger models: remote entries and the consolidated rows built from them."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .enums import MovementType, RowStatus


@dataclass
class LedgerEntry:
    """
    An entry (entrada contable) on the remote ledger service.
    Identity is the server-assigned id; entries are never modified here.
    """
    id: int
    description: str = ""
    auxiliary_id: Optional[int] = None
    account_id: int = 0
    movement_type: str = MovementType.CREDIT.value
    entry_date: str = ""  # YYYY-MM-DD
    amount: float = 0.0
    status_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "auxiliary_id": self.auxiliary_id,
            "account_id": self.account_id,
            "movement_type": self.movement_type,
            "entry_date": self.entry_date,
            "amount": self.amount,
            "status_id": self.status_id,
        }


@dataclass
class ConsolidatedRow:
    """
    Unit of display and of posting decisions.

    ledger_entry_id is None while the row is pending; once set it points at
    the ledger entry that proves the row was already posted.
    """
    client_id: int
    description: str
    auxiliary_id: int
    auxiliary_name: str
    account_id: int
    movement_type: str
    entry_date: str
    accumulated_amount: float
    ledger_entry_id: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.ledger_entry_id is None

    @property
    def status(self) -> RowStatus:
        return RowStatus.PENDING if self.is_pending else RowStatus.POSTED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ledger_entry_id": self.ledger_entry_id,
            "client_id": self.client_id,
            "description": self.description,
            "auxiliary_id": self.auxiliary_id,
            "auxiliary_name": self.auxiliary_name,
            "account_id": self.account_id,
            "movement_type": self.movement_type,
            "entry_date": self.entry_date,
            "accumulated_amount": self.accumulated_amount,
            "status": self.status.value,
        }


@dataclass
class PostResult:
    """Outcome of a successful POST to a ledger service."""
    entry_id: Optional[Union[str, int]] = None
    raw: Dict[str, Any] = field(default_factory=dict)
