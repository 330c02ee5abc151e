"""
Absolute callback URLs handed to the provider.

Every URL is derived from (order id, step, gateway id) and the site base URL
only, so it can be rebuilt on any node without extra state.
"""
from __future__ import annotations

import httpx

from core.settings import CheckoutGatewayConfig

PAYMENT_STEP = "payment"
NOTIFY_STEP = "complete"


class CallbackUrlBuilder:
    def __init__(self, config: CheckoutGatewayConfig) -> None:
        self._base = config.site_base_url.rstrip("/") + "/" + config.api_prefix.strip("/")
        self._gateway_id = config.gateway_id

    def _url(self, path: str, params: dict[str, str]) -> str:
        return str(httpx.URL(f"{self._base}/{path.lstrip('/')}", params=params))

    def cancel_url(self, order_id: str, step: str = PAYMENT_STEP) -> str:
        return self._url(f"checkout/{order_id}/{step}/cancel", {"payment_gateway": self._gateway_id})

    def return_url(self, order_id: str, step: str = PAYMENT_STEP) -> str:
        return self._url(f"checkout/{order_id}/{step}/return", {"payment_gateway": self._gateway_id})

    def notify_url(self, order_id: str, step: str = NOTIFY_STEP) -> str:
        return self._url(f"payments/notify/{self._gateway_id}", {"order_id": order_id, "step": step})
