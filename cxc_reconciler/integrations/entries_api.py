"""
Accounting entries API client (secondary CxC integration).

Lists entries with an optional inclusive date filter and creates balanced
two-line entries: debit the receivables account, credit the contra account.
"""

from typing import Any, Dict, List, Optional, Union

import httpx
import structlog

from ..config import Settings
from ..exceptions import UnexpectedResponseShapeError, ValidationError
from ..ingestion.dates import coerce_date, to_iso_from_es
from ..ingestion.normalizer import iter_dicts, to_float
from ..models import PostResult
from .base import BaseServiceClient
from .ledger_client import extract_id

logger = structlog.get_logger()

# Date keys checked, in order, when filtering listed entries
ENTRY_DATE_KEYS = ("fecha", "date", "fechaCreacion")


def entry_date(item: Dict[str, Any]) -> Any:
    for key in ENTRY_DATE_KEYS:
        if item.get(key):
            return item[key]
    return None


def filter_by_date_range(
    items: List[Dict[str, Any]],
    date_from: str,
    date_to: str,
) -> List[Dict[str, Any]]:
    """Keep items whose date falls within [date_from, date_to]."""
    start = coerce_date(date_from)
    end = coerce_date(date_to)
    if start is None or end is None:
        raise ValidationError(
            f"Invalid date range: {date_from!r} - {date_to!r}", field="from"
        )

    kept = []
    for item in items:
        item_date = coerce_date(entry_date(item))
        if item_date is not None and start <= item_date <= end:
            kept.append(item)
    return kept


class AccountingEntriesClient(BaseServiceClient):
    """Client for the public accounting entries endpoint."""

    service_name = "accounting entries"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or "", settings=settings, transport=transport)
        self.base_url = base_url or self.settings.entries_api_url
        self.api_key = api_key if api_key is not None else self.settings.cxc_api_key
        self.cuenta_cxc = self.settings.cuenta_cxc
        self.cuenta_contra = self.settings.cuenta_contra

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise ValidationError(
                "CXC_API_KEY environment variable is required", field="cxc_api_key"
            )
        self.headers["x-api-key"] = self.api_key

    async def list_entries(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List accounting entries.

        Args:
            date_from: Inclusive start date; filter applies only with date_to
            date_to: Inclusive end date

        Returns:
            Entry objects as returned by the API
        """
        self._require_api_key()
        response = await self._request("GET")

        try:
            payload = response.json()
        except ValueError:
            raise UnexpectedResponseShapeError(
                "Accounting entries endpoint did not return JSON",
                payload=response.text,
            )

        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict):
            items = payload.get("items") or []
        else:
            items = []
        items = list(iter_dicts(items))

        if date_from and date_to:
            items = filter_by_date_range(items, date_from, date_to)

        logger.info(
            "Accounting entries listed",
            total=len(items),
            date_from=date_from,
            date_to=date_to,
        )
        return items

    def build_payload(
        self,
        transaction_id: Union[int, str],
        description: str,
        transaction_date: str,
        amount: Any,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Validate the input and build a balanced two-line entry.

        Raises:
            ValidationError: Missing field, non-positive amount or a date
                that is not "DD de Mes"
        """
        missing = [
            name
            for name, value in (
                ("idTransaccion", transaction_id),
                ("descripcion", description),
                ("fechaTransaccion", transaction_date),
                ("monto", amount),
            )
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", field=missing[0]
            )

        monto = to_float(amount, default=float("nan"))
        if not monto > 0:
            raise ValidationError("Monto must be greater than 0", field="monto")

        fecha = to_iso_from_es(transaction_date, year)

        return {
            "fecha": fecha,
            "descripcion": f"CxC Transaccion #{transaction_id} - {description}",
            "movimientos": [
                {"cuenta": self.cuenta_cxc, "debe": monto, "haber": 0},
                {"cuenta": self.cuenta_contra, "debe": 0, "haber": monto},
            ],
        }

    async def create_entry(
        self,
        transaction_id: Union[int, str],
        description: str,
        transaction_date: str,
        amount: Any,
        year: Optional[int] = None,
    ) -> PostResult:
        """Create an entry for a single CxC transaction."""
        payload = self.build_payload(
            transaction_id, description, transaction_date, amount, year
        )
        self._require_api_key()

        response = await self._request("POST", json=payload)
        try:
            raw = response.json()
        except ValueError:
            raw = {}
        if not isinstance(raw, dict):
            raw = {"value": raw}

        result = PostResult(entry_id=extract_id(raw), raw=raw)
        logger.info(
            "Accounting entry created",
            transaction_id=transaction_id,
            entry_id=result.entry_id,
        )
        return result
