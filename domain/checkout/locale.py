"""Locale to purchase-country mapping supported by the hosted checkout."""
from __future__ import annotations

from typing import Optional

from .exceptions import CheckoutConfigurationError

LOCALE_COUNTRIES: dict[str, str] = {
    "sv-se": "SE",
    "fi-fi": "FI",
    "sv-fi": "FI",
    "nb-no": "NO",
    "de-de": "DE",
    "de-at": "AT",
}


def country_for_locale(locale: str) -> Optional[str]:
    return LOCALE_COUNTRIES.get((locale or "").lower())


def purchase_country(locale: str) -> str:
    country = country_for_locale(locale)
    if not country:
        raise CheckoutConfigurationError(
            f"No purchase country configured for locale '{locale}'",
            setting="language",
            details={"locale": locale, "supported": sorted(LOCALE_COUNTRIES)},
        )
    return country
