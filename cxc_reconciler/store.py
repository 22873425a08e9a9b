"""
In-memory store for bookkeeping records.

Stands in for a database behind the Repository protocol so that callers
(API routes, the store-backed transaction source) can be handed any
implementation. Nothing is persisted.
"""

from copy import deepcopy
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

import structlog

logger = structlog.get_logger()

Record = Dict[str, Any]


class Repository(Protocol):
    """CRUD interface over records keyed by an integer id."""

    def list(self, **filters: Any) -> List[Record]: ...

    def get(self, record_id: int) -> Optional[Record]: ...

    def create(self, data: Record) -> Record: ...

    def update(self, record_id: int, data: Record) -> Optional[Record]: ...

    def delete(self, record_id: int) -> bool: ...


class InMemoryRepository:
    """Repository holding records in a dict; ids are assigned sequentially."""

    def __init__(
        self,
        name: str,
        timestamp_field: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.name = name
        self.timestamp_field = timestamp_field
        self._clock = clock
        self._records: Dict[int, Record] = {}
        self._next_id = 1

    def list(self, **filters: Any) -> List[Record]:
        records = self._records.values()
        if filters:
            records = [
                r for r in records
                if all(r.get(key) == value for key, value in filters.items())
            ]
        return [deepcopy(r) for r in records]

    def get(self, record_id: int) -> Optional[Record]:
        record = self._records.get(record_id)
        return deepcopy(record) if record is not None else None

    def create(self, data: Record) -> Record:
        record = {k: v for k, v in data.items() if k != "id"}
        record["id"] = self._next_id
        if self.timestamp_field and not record.get(self.timestamp_field):
            record[self.timestamp_field] = self._clock().isoformat()
        self._records[self._next_id] = record
        self._next_id += 1

        logger.debug("Record created", repository=self.name, id=record["id"])
        return deepcopy(record)

    def update(self, record_id: int, data: Record) -> Optional[Record]:
        record = self._records.get(record_id)
        if record is None:
            return None
        changes = {k: v for k, v in data.items() if k not in ("id", self.timestamp_field)}
        record.update(changes)

        logger.debug("Record updated", repository=self.name, id=record_id)
        return deepcopy(record)

    def delete(self, record_id: int) -> bool:
        removed = self._records.pop(record_id, None) is not None
        if removed:
            logger.debug("Record deleted", repository=self.name, id=record_id)
        return removed

    def __len__(self) -> int:
        return len(self._records)


class DataStore:
    """The bookkeeping collections served by the local API."""

    def __init__(
        self,
        clients: Optional[Repository] = None,
        document_types: Optional[Repository] = None,
        accounting_entries: Optional[Repository] = None,
        transactions: Optional[Repository] = None,
    ):
        self.clients = _or_default(clients, "clientes", "fechaRegistro")
        self.document_types = _or_default(document_types, "tipos-documentos", "fechaCreacion")
        self.accounting_entries = _or_default(
            accounting_entries, "asientos-contables", "fechaCreacion"
        )
        self.transactions = _or_default(transactions, "transacciones")


def _or_default(
    repository: Optional[Repository],
    name: str,
    timestamp_field: Optional[str] = None,
) -> Repository:
    if repository is not None:
        return repository
    return InMemoryRepository(name, timestamp_field)
