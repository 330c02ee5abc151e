"""
Factory for remote transaction gateway clients.
"""
from __future__ import annotations

from typing import Optional

from core.settings import CheckoutSettings, checkout_settings
from application.ports.transaction_gateway import RemoteTransactionGateway


def get_transaction_gateway(cfg: Optional[CheckoutSettings] = None) -> RemoteTransactionGateway:
    cfg = cfg or checkout_settings
    if cfg.gateway_id.startswith("klarna"):
        from .klarna_client import KlarnaCheckoutClient
        return KlarnaCheckoutClient.from_settings(cfg)
    raise ValueError(f"Unsupported checkout gateway: {cfg.gateway_id}")
