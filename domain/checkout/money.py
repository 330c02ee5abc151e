"""
Minor-unit and tax-rate normalization for the provider's integer wire format.

Decimal arithmetic only; binary floats are routed through ``str`` first so a
value like ``0.1`` never drifts into ``0.1000000000000000055``.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_DOWN
from typing import Union

Number = Union[Decimal, int, str, float]

MINOR_UNIT_FACTOR = Decimal("100")
BASIS_RATE_FACTOR = Decimal("10000")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_minor_units(amount: Number) -> int:
    """11.00 -> 1100. Truncates toward zero, never rounds."""
    scaled = _to_decimal(amount) * MINOR_UNIT_FACTOR
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def to_basis_rate(percentage: Number) -> int:
    """24 (percent) -> 240000."""
    scaled = _to_decimal(percentage) * BASIS_RATE_FACTOR
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))
