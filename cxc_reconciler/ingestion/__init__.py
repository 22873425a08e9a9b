"""Ingestion module for normalizing transaction payloads and dates."""

from .normalizer import normalize, unwrap_payload
from .dates import to_iso_from_es, coerce_date, canonical_date

__all__ = [
    "normalize",
    "unwrap_payload",
    "to_iso_from_es",
    "coerce_date",
    "canonical_date",
]
