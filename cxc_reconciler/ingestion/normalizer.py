"""
Normalizer for loosely typed transaction payloads.

Malformed records become zero/empty-valued transactions instead of raising,
so one bad record never blocks the rest of the batch.
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from ..models import Transaction

logger = structlog.get_logger()

# Backend (Spanish) key first, English fallback second
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("id",),
    "type": ("tipo", "type"),
    "client_id": ("clienteId", "clientId"),
    "document": ("documento", "document"),
    "date": ("fecha", "date"),
    "category_id": ("categoriaId", "categoryId"),
    "amount": ("monto", "amount"),
}

# Keys checked, in order, for a wrapped list payload
ENVELOPE_KEYS = ("data", "items")


def unwrap_payload(payload: Any) -> Optional[List[Any]]:
    """
    Extract the record list from a response payload.

    Precedence:
        1. payload["data"] when it is a list
        2. payload["items"] when it is a list
        3. payload itself when it is a bare list

    Returns None when none of the shapes apply.
    """
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
        return None

    if isinstance(payload, list):
        return payload

    return None


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to int, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return default
        return int(number) if math.isfinite(number) else default
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce to a finite float, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _lookup(record: Dict[str, Any], field_name: str) -> Any:
    for key in FIELD_ALIASES[field_name]:
        if record.get(key) is not None:
            return record[key]
    return None


def normalize_one(record: Any) -> Transaction:
    """Normalize a single record. Non-mapping input yields all defaults."""
    if not isinstance(record, dict):
        return Transaction()

    return Transaction(
        id=to_int(_lookup(record, "id")),
        type=to_str(_lookup(record, "type")),
        client_id=to_int(_lookup(record, "client_id")),
        document=to_str(_lookup(record, "document")),
        date=to_str(_lookup(record, "date")),
        category_id=to_int(_lookup(record, "category_id")),
        amount=to_float(_lookup(record, "amount")),
    )


def normalize(raw: Any) -> List[Transaction]:
    """
    Normalize a raw list of transaction-like objects.

    Args:
        raw: Anything; only lists are processed

    Returns:
        One Transaction per element, or an empty list for non-list input
    """
    if not isinstance(raw, list):
        logger.warning(
            "Transaction payload is not a list",
            payload_type=type(raw).__name__,
        )
        return []

    transactions = [normalize_one(record) for record in raw]

    defaulted = sum(1 for record in raw if not isinstance(record, dict))
    if defaulted:
        logger.warning("Non-object transaction records defaulted", count=defaulted)

    logger.debug("Transactions normalized", total=len(transactions))
    return transactions


def iter_dicts(items: Iterable[Any]) -> Iterable[Dict[str, Any]]:
    """Yield only the mapping elements of an iterable."""
    for item in items:
        if isinstance(item, dict):
            yield item
