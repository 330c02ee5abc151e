"""
Checkout DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CartItem(BaseModel):
    reference: str
    name: str
    quantity: int = Field(ge=0)
    unit_price: int  # minor units
    tax_rate: int = 0  # percent x 10000
    type: Optional[Literal["discount", "shipping_fee"]] = None


class Cart(BaseModel):
    items: list[CartItem] = Field(default_factory=list)


class Merchant(BaseModel):
    id: str
    terms_uri: str
    checkout_uri: str
    confirmation_uri: str
    push_uri: str
    back_to_store_uri: str


class TransactionPayload(BaseModel):
    """Body sent to the provider when creating a remote transaction."""

    cart: Cart
    purchase_country: str
    purchase_currency: str
    locale: str
    merchant_reference: dict[str, str]
    merchant: Merchant

    @field_validator("purchase_country")
    @classmethod
    def _validate_country(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 2 or not u.isalpha():
            raise ValueError("purchase_country must be ISO-3166 alpha-2")
        return u

    @field_validator("purchase_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u

    def to_values(self) -> dict[str, Any]:
        """Plain mapping handed to transaction hooks and the gateway."""
        return self.model_dump(mode="json", exclude_none=True)


class RemoteTransaction(BaseModel):
    """Transient local view of the provider-owned transaction resource."""

    id: Optional[str] = None
    status: Optional[str] = None
    billing_address: Optional[dict[str, Any]] = None
    gui: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_resource(cls, body: dict[str, Any], *, remote_id: Optional[str] = None) -> "RemoteTransaction":
        data = dict(body or {})
        if remote_id and not data.get("id"):
            data["id"] = remote_id
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        return cls.model_validate(data)

    @property
    def snippet(self) -> Optional[str]:
        return (self.gui or {}).get("snippet")


class CheckoutStarted(BaseModel):
    order_id: str
    remote_id: str
    status: Optional[str] = None
    snippet: Optional[str] = None


class PaymentSummary(BaseModel):
    id: Optional[int] = None
    order_id: str
    payment_gateway: str
    amount: str
    currency: str
    state: str
    remote_id: Optional[str] = None
    test: bool = True

    @classmethod
    def from_entity(cls, payment: Any) -> "PaymentSummary":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            payment_gateway=payment.payment_gateway,
            amount=str(payment.amount),
            currency=payment.currency,
            state=payment.state.value,
            remote_id=payment.remote_id,
            test=payment.test,
        )
