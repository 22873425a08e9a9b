"""
Ledger API client for reading and creating accounting entries
(entradas contables) on the external bookkeeping service.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..config import Settings
from ..exceptions import UnexpectedResponseShapeError
from ..ingestion.normalizer import to_float, to_int, to_str
from ..models import ConsolidatedRow, LedgerEntry, MovementType, PostResult
from .base import BaseServiceClient

logger = structlog.get_logger()

# Identifier keys checked in order on a POST response body
ID_KEYS = ("id", "_id", "uuid")


def extract_id(body: Any) -> Optional[Any]:
    """Return the first identifier present in a response body, or None."""
    if not isinstance(body, dict):
        return None
    for key in ID_KEYS:
        if body.get(key) is not None:
            return body[key]
    return None


class LedgerClient(BaseServiceClient):
    """
    Client for the ledger (entradas contables) API.
    Authenticates with an X-API-Key header.
    """

    service_name = "ledger"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or "", settings=settings, transport=transport)
        self.base_url = base_url or self.settings.ledger_api_url
        self.headers["X-API-Key"] = (
            api_key if api_key is not None else self.settings.ledger_api_key
        )

    async def fetch_entries(
        self,
        date_from: str,
        date_to: str,
        account_id: Optional[int] = None,
    ) -> List[LedgerEntry]:
        """
        Fetch ledger entries for a date range and account.

        Args:
            date_from: Start date (YYYY-MM-DD)
            date_to: End date (YYYY-MM-DD)
            account_id: Account filter; defaults to the CxC account

        Returns:
            List of ledger entries in server order

        Raises:
            RequestTimeoutError, ExternalServiceError,
            UnexpectedResponseShapeError
        """
        if account_id is None:
            account_id = self.settings.cxc_account_id

        params = {
            "fechaInicio": date_from,
            "fechaFin": date_to,
            "cuenta_Id": str(account_id),
        }
        response = await self._request("GET", params=params)

        try:
            envelope = response.json()
        except ValueError:
            raise UnexpectedResponseShapeError(
                "Ledger GET did not return JSON", payload=response.text
            )

        if not isinstance(envelope, dict) or not envelope.get("success"):
            raise UnexpectedResponseShapeError(
                "Ledger GET envelope does not declare success", payload=envelope
            )

        data = envelope.get("data")
        if not isinstance(data, list):
            raise UnexpectedResponseShapeError(
                "Ledger GET envelope has no data list", payload=envelope
            )

        entries = []
        for item in data:
            if not isinstance(item, dict):
                raise UnexpectedResponseShapeError(
                    "Ledger entry is not an object", payload=item
                )
            entries.append(self._parse_entry(item))

        logger.info(
            "Ledger entries fetched",
            total=len(entries),
            date_from=date_from,
            date_to=date_to,
            account_id=account_id,
        )
        return entries

    async def post_entry(self, row: ConsolidatedRow) -> PostResult:
        """
        Create a credit entry for a consolidated row.

        Returns:
            PostResult with the server-assigned id when one is present

        Raises:
            RequestTimeoutError, ExternalServiceError
        """
        body = self.build_post_body(row)
        logger.info("Posting ledger entry", client_id=row.client_id, payload=body)

        response = await self._request("POST", json=body)

        try:
            raw = response.json()
        except ValueError:
            raw = {}
        if not isinstance(raw, dict):
            raw = {"value": raw}

        entry_id = extract_id(raw)
        if entry_id is None:
            logger.warning(
                "Ledger POST response carries no identifier",
                client_id=row.client_id,
                raw=raw,
            )

        return PostResult(entry_id=entry_id, raw=raw)

    def build_post_body(self, row: ConsolidatedRow) -> Dict[str, Any]:
        """Wire payload for a new entry."""
        body: Dict[str, Any] = {
            "descripcion": row.description,
            "cuenta_Id": self.settings.cxc_account_id,
            "tipoMovimiento": MovementType.CREDIT.value,
            "fechaAsiento": row.entry_date,
            "montoAsiento": float(row.accumulated_amount),
        }
        if self.settings.include_auxiliary_in_post:
            body["auxiliar_Id"] = self.settings.auxiliary_id
        return body

    def _parse_entry(self, data: Dict[str, Any]) -> LedgerEntry:
        """Parse a ledger entry from the API response."""
        auxiliary = data.get("auxiliar_Id")
        return LedgerEntry(
            id=to_int(data.get("id")),
            description=to_str(data.get("descripcion")),
            auxiliary_id=to_int(auxiliary) if auxiliary is not None else None,
            account_id=to_int(data.get("cuenta_Id")),
            movement_type=to_str(data.get("tipoMovimiento")),
            entry_date=to_str(data.get("fechaAsiento")),
            amount=to_float(data.get("montoAsiento")),
            status_id=to_int(data.get("estado_Id")),
        )
