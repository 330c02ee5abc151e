"""
Projection of the provider's billing address onto the local address model.

Nordic markets send a single ``street_address``; Germany and Austria send
``street_name`` and ``street_number`` separately.
"""
from __future__ import annotations

from typing import Any, Mapping

from domain.order.entity import Address, Order


def format_street(remote_address: Mapping[str, Any]) -> str:
    if "street_address" in remote_address:
        return str(remote_address["street_address"] or "")
    if "street_name" in remote_address:
        return f"{remote_address['street_name']} {remote_address.get('street_number', '')}".strip()
    return ""


def project_billing_address(remote_address: Mapping[str, Any]) -> Address:
    return Address(
        given_name=str(remote_address.get("given_name") or ""),
        family_name=str(remote_address.get("family_name") or ""),
        address_line1=format_street(remote_address),
        postal_code=str(remote_address.get("postal_code") or ""),
        locality=str(remote_address.get("city") or ""),
        country_code=str(remote_address.get("country") or "").upper(),
    )


def update_billing_profile(order: Order, remote_address: Mapping[str, Any]) -> bool:
    """Write the projected address to the order's billing profile, if it has one."""
    if order.billing_profile is None:
        return False
    order.billing_profile.address = project_billing_address(remote_address)
    return True
