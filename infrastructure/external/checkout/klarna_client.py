"""
Klarna Checkout (v2 aggregated order API) adapter over httpx.

Every request body is signed with ``base64(sha256(body + shared_secret))``
and sent in the ``Authorization: Klarna <digest>`` header.
"""
from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Optional

import httpx

from application.dtos.checkout import RemoteTransaction
from core.settings import CheckoutSettings
from domain.checkout.exceptions import RemoteTransactionError
from infrastructure.external.checkout.base import BaseCheckoutClient


CONTENT_TYPE = "application/vnd.klarna.checkout.aggregated-order-v2+json"


def klarna_digest(body: bytes, shared_secret: str) -> str:
    digest = hashlib.sha256(body + shared_secret.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


class KlarnaCheckoutClient(BaseCheckoutClient):
    provider = "klarna_checkout"

    def __init__(
        self,
        *,
        api_uri: str,
        shared_secret: str,
        timeouts: Optional[dict[str, float]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeouts=timeouts, transport=transport)
        self.api_uri = api_uri.rstrip("/")
        self._shared_secret = shared_secret

    @classmethod
    def from_settings(cls, cfg: CheckoutSettings, **kwargs: Any) -> "KlarnaCheckoutClient":
        return cls(
            api_uri=cfg.api_uri,
            shared_secret=cfg.shared_secret,
            timeouts=cfg.timeouts.model_dump(),
            **kwargs,
        )

    def _headers(self, body: bytes = b"") -> dict[str, str]:
        headers = {
            "Accept": CONTENT_TYPE,
            "Authorization": f"Klarna {klarna_digest(body, self._shared_secret)}",
        }
        if body:
            headers["Content-Type"] = CONTENT_TYPE
        return headers

    def _resource_url(self, remote_id: str) -> str:
        return f"{self.api_uri}/{remote_id}"

    @staticmethod
    def _encode(payload: dict[str, Any]) -> bytes:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def create(self, payload: dict[str, Any]) -> RemoteTransaction:
        body = self._encode(payload)
        response = await self._send("POST", self.api_uri, content=body, headers=self._headers(body))
        location = response.headers.get("Location")
        if not location:
            raise RemoteTransactionError(
                "Provider did not return the location of the created transaction",
                provider=self.provider,
                status_code=response.status_code,
            )
        remote_id = location.rstrip("/").rsplit("/", 1)[-1]
        self._log("checkout_remote_created", remote_id=remote_id, status_code=response.status_code)
        return RemoteTransaction.from_resource(self._decode(response), remote_id=remote_id)

    async def fetch(self, remote_id: str) -> RemoteTransaction:
        response = await self._send(
            "GET",
            self._resource_url(remote_id),
            remote_id=remote_id,
            headers=self._headers(),
        )
        remote = RemoteTransaction.from_resource(self._decode(response), remote_id=remote_id)
        self._log("checkout_remote_fetched", remote_id=remote_id, status=remote.status)
        return remote

    async def update(self, remote_id: str, payload: dict[str, Any]) -> RemoteTransaction:
        body = self._encode(payload)
        response = await self._send(
            "POST",
            self._resource_url(remote_id),
            remote_id=remote_id,
            content=body,
            headers=self._headers(body),
        )
        data = self._decode(response)
        if not data:
            return await self.fetch(remote_id)
        remote = RemoteTransaction.from_resource(data, remote_id=remote_id)
        self._log("checkout_remote_updated", remote_id=remote_id, status=remote.status)
        return remote
