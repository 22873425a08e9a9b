"""
Transaction sources: the remote transactions backend, and the local store.
"""

from typing import Any, List, Optional

import httpx
import structlog

from ..config import Settings
from ..exceptions import UnexpectedResponseShapeError
from ..ingestion.normalizer import unwrap_payload
from .base import BaseServiceClient

logger = structlog.get_logger()


class TransactionSourceClient(BaseServiceClient):
    """Client for the transactions (Transacciones) backend."""

    service_name = "transactions"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or "", settings=settings, transport=transport)
        self.base_url = base_url or self.settings.transactions_api_url
        key = api_key if api_key is not None else self.settings.transactions_api_key
        if key:
            self.headers["X-API-Key"] = key

    async def fetch_all(self) -> List[Any]:
        """
        Fetch raw transaction records.

        The payload may be a bare list or wrapped under "data"/"items".

        Raises:
            RequestTimeoutError, ExternalServiceError,
            UnexpectedResponseShapeError
        """
        response = await self._request("GET")

        try:
            payload = response.json()
        except ValueError:
            raise UnexpectedResponseShapeError(
                "Transactions endpoint did not return JSON", payload=response.text
            )

        records = unwrap_payload(payload)
        if records is None:
            raise UnexpectedResponseShapeError(
                "Transactions payload is neither a list nor a data/items envelope",
                payload=payload,
            )

        logger.info("Transactions fetched", total=len(records))
        return records


class StoreTransactionSource:
    """Transaction source backed by the in-memory store."""

    def __init__(self, store):
        self.store = store

    async def fetch_all(self) -> List[Any]:
        return self.store.transactions.list()

    async def close(self):
        return None
