"""
Cart line building: plain order items followed by aggregated adjustment lines.

The provider renders lines in the order given, so both the ordering and the
merge-by-key rule below are part of the wire contract:

* plain items keep the order's item order;
* every non-tax adjustment becomes (or is merged into) a synthetic line keyed
  by ``{type}_{source_id}``; adjustments without a source id get a positional
  key and are never merged;
* synthetic lines are stable-sorted by weight and appended after the items.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from domain.order.entity import Adjustment, Order, OrderItem
from .money import to_basis_rate, to_minor_units

TAX_ADJUSTMENT = "tax"

# Local adjustment type -> provider cart item type
CART_ITEM_TYPES = {
    "promotion": "discount",
    "shipping": "shipping_fee",
}

AggregationKey = Union[str, int]


@dataclass
class CartLine:
    reference: str
    name: str
    quantity: int
    unit_price: int
    tax_rate: int = 0
    type: Optional[str] = None
    weight: Optional[int] = None

    def as_payload(self) -> dict:
        line = {
            "reference": self.reference,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax_rate": self.tax_rate,
        }
        if self.type:
            line["type"] = self.type
        return line


def item_tax_rate(item: OrderItem) -> int:
    """Basis rate of the item's tax adjustment, 0 without one."""
    for adjustment in item.adjustments:
        if adjustment.type == TAX_ADJUSTMENT:
            if adjustment.percentage:
                return to_basis_rate(adjustment.percentage)
            return 0
    return 0


def build_item_lines(items: Iterable[OrderItem]) -> list[CartLine]:
    return [
        CartLine(
            reference=item.title,
            name=item.title,
            quantity=int(item.quantity),
            unit_price=to_minor_units(item.unit_price.number),
            tax_rate=item_tax_rate(item),
        )
        for item in items
    ]


def aggregation_key(adjustment: Adjustment, position: int) -> AggregationKey:
    # int keys never compare equal to the string keys of identified adjustments
    if not adjustment.source_id:
        return position
    return f"{adjustment.type}_{adjustment.source_id}"


def build_adjustment_lines(adjustments: Iterable[Adjustment]) -> list[CartLine]:
    lines: dict[AggregationKey, CartLine] = {}
    for adjustment in adjustments:
        if adjustment.type == TAX_ADJUSTMENT:
            continue
        key = aggregation_key(adjustment, len(lines))
        amount = to_minor_units(adjustment.amount.number)
        line = lines.get(key)
        if line is None:
            lines[key] = CartLine(
                reference=adjustment.label,
                name=adjustment.label,
                quantity=1,
                unit_price=amount,
                tax_rate=0,
                type=CART_ITEM_TYPES.get(adjustment.type),
                weight=adjustment.weight,
            )
        else:
            line.unit_price += amount
    # sorted() is stable: unweighted lines keep encounter order
    return sorted(lines.values(), key=lambda line: line.weight or 0)


def build_cart_lines(order: Order) -> list[CartLine]:
    return build_item_lines(order.items) + build_adjustment_lines(order.collect_adjustments())
