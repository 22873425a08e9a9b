"""
Shared async HTTP plumbing for the external service clients.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx
import structlog

from ..config import Settings, get_settings
from ..exceptions import ExternalServiceError, RequestTimeoutError

logger = structlog.get_logger()


class BaseServiceClient:
    """
    Base class for clients of the bookkeeping backends.

    Owns one lazily created httpx.AsyncClient and translates httpx failures
    into the package's error taxonomy.
    """

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = base_url
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }
        self.timeout = self.settings.request_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.timeout,
                verify=self.settings.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(
        self,
        method: str,
        url: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Issue a request and return the response when its status is 2xx.

        httpx applies the timeout to each phase (connect, read, write, pool)
        separately; the whole call is additionally bounded by one overall
        deadline of the same length, so a slow trickling response cannot
        hold it open past request_timeout_seconds.

        Raises:
            RequestTimeoutError: The call exceeded the configured timeout
            ExternalServiceError: Non-2xx status or transport failure
        """
        client = await self._get_client()
        target = url or self.base_url

        logger.debug("Outbound request", service=self.service_name, method=method, url=target)

        try:
            response = await asyncio.wait_for(
                client.request(method, target, **kwargs), timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.warning(
                "Request timeout",
                service=self.service_name,
                method=method,
                timeout=self.timeout,
            )
            raise RequestTimeoutError(
                f"{self.service_name} did not answer within {self.timeout:g}s",
                url=target,
            )
        except httpx.RequestError as e:
            raise ExternalServiceError(
                f"Could not reach {self.service_name}: {e}",
                body=str(e),
            )

        if not response.is_success:
            body = response.text
            logger.error(
                "External API error",
                service=self.service_name,
                method=method,
                status=response.status_code,
                body=body[:500],
            )
            raise ExternalServiceError(
                f"{method} {self.service_name} failed: {response.status_code}",
                status=response.status_code,
                body=body,
            )

        return response
