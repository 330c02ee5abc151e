"""
Checkout gateway settings using pydantic-settings v2 with nested env keys.

`CheckoutSettings` reads the process environment once; the engine itself only
ever sees the immutable `CheckoutGatewayConfig` produced by
`CheckoutSettings.to_gateway_config()`.
"""
from __future__ import annotations

from typing import Literal
from urllib.parse import urlsplit

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, ConfigDict, Field


class CheckoutTimeouts(BaseModel):
    connect: float = 2.0
    read: float = 10.0
    write: float = 10.0
    total: float = 15.0


class CheckoutGatewayConfig(BaseModel):
    """Gateway configuration value object passed into compiler and reconciler."""

    model_config = ConfigDict(frozen=True)

    gateway_id: str
    mode: Literal["test", "live"] = "test"
    merchant_id: str = ""
    terms_url: str = ""
    language: str = "sv-se"
    update_billing_profile: bool = False
    site_base_url: str = "http://localhost"
    api_prefix: str = "/api/v1"

    @property
    def is_live(self) -> bool:
        return self.mode == "live"


def resolve_terms_url(path: str, site_base_url: str) -> str:
    """External URLs are kept verbatim, site paths are made absolute."""
    if not path:
        return ""
    if urlsplit(path).scheme in {"http", "https"}:
        return path
    return f"{site_base_url.rstrip('/')}/{path.lstrip('/')}"


class CheckoutSettings(BaseSettings):
    gateway_id: str = "klarna_checkout"
    mode: Literal["test", "live"] = "test"
    merchant_id: str = ""
    shared_secret: str = ""
    terms_path: str = ""
    language: str = "sv-se"
    update_billing_profile: bool = False
    site_base_url: str = "http://localhost:8000"
    live_api_url: str = "https://checkout.klarna.com/checkout/orders"
    test_api_url: str = "https://checkout.testdrive.klarna.com/checkout/orders"
    timeouts: CheckoutTimeouts = Field(default_factory=CheckoutTimeouts)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHECKOUT__",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @property
    def is_live(self) -> bool:
        return self.mode == "live"

    @property
    def api_uri(self) -> str:
        return self.live_api_url if self.is_live else self.test_api_url

    @property
    def terms_url(self) -> str:
        return resolve_terms_url(self.terms_path, self.site_base_url)

    def to_gateway_config(self, *, api_prefix: str = "/api/v1") -> CheckoutGatewayConfig:
        return CheckoutGatewayConfig(
            gateway_id=self.gateway_id,
            mode=self.mode,
            merchant_id=self.merchant_id,
            terms_url=self.terms_url,
            language=self.language,
            update_billing_profile=self.update_billing_profile,
            site_base_url=self.site_base_url,
            api_prefix=api_prefix,
        )


checkout_settings = CheckoutSettings()
