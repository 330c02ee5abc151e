"""
Base checkout client implementing shared concerns: http, logging, error mapping.

Concrete providers subclass and implement the provider-specific wire format.
Calls are never retried here; retries belong to the provider's notification
schedule and the customer's browser.
"""
from __future__ import annotations

from typing import Any, Optional
from contextlib import asynccontextmanager

import httpx

from core.logging_config import get_logger
from application.dtos.checkout import RemoteTransaction
from application.ports.transaction_gateway import RemoteTransactionGateway
from domain.checkout.exceptions import RemoteTransactionError, RemoteTransactionNotFound


logger = get_logger(__name__)


class BaseCheckoutClient(RemoteTransactionGateway):
    provider: str = "base"

    def __init__(
        self,
        *,
        timeouts: Optional[dict[str, float]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeouts_cfg = timeouts or {"connect": 2.0, "read": 10.0, "write": 10.0, "total": 15.0}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        # Kept open for reuse; aclose() closes it.
        yield self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _send(
        self,
        method: str,
        url: str,
        *,
        remote_id: Optional[str] = None,
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Issue one request and map transport failures and error statuses."""
        try:
            async with self.client() as http:
                response = await http.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise RemoteTransactionError(
                f"{self.provider} request failed: {exc}",
                provider=self.provider,
                remote_id=remote_id,
            ) from exc

        if response.status_code == 404:
            raise RemoteTransactionNotFound(
                f"Remote transaction {remote_id} not found",
                provider=self.provider,
                remote_id=remote_id,
                status_code=404,
            )
        if response.is_error:
            raise RemoteTransactionError(
                f"{self.provider} rejected {method} request with status {response.status_code}",
                provider=self.provider,
                remote_id=remote_id,
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )
        return response

    # Default implementations raise to force override
    async def create(self, payload: dict[str, Any]) -> RemoteTransaction:  # type: ignore[override]
        raise NotImplementedError

    async def fetch(self, remote_id: str) -> RemoteTransaction:  # type: ignore[override]
        raise NotImplementedError

    async def update(self, remote_id: str, payload: dict[str, Any]) -> RemoteTransaction:  # type: ignore[override]
        raise NotImplementedError

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
