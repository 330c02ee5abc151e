from decimal import Decimal

from domain.checkout.cart import build_adjustment_lines, build_cart_lines, item_tax_rate
from domain.order.entity import Adjustment, Money, OrderItem


def _adj(type_, label, amount, source_id=None, weight=None):
    return Adjustment(
        type=type_,
        label=label,
        amount=Money(Decimal(amount), "EUR"),
        source_id=source_id,
        weight=weight,
    )


def test_item_without_tax_adjustment_has_zero_rate():
    item = OrderItem(title="A", quantity=1, unit_price=Money(Decimal("5"), "EUR"))
    assert item_tax_rate(item) == 0


def test_item_tax_rate_uses_first_tax_adjustment(order_factory):
    order = order_factory(tax_percentage="24")
    assert item_tax_rate(order.items[0]) == 240000


def test_items_then_adjustments(order_factory):
    order = order_factory(adjustments=[
        _adj("shipping", "Shipping", "4.90", source_id="flat"),
        _adj("promotion", "Summer", "-2.00", source_id="7"),
    ])
    lines = build_cart_lines(order)

    assert len(lines) == 3
    assert lines[0].as_payload() == {
        "reference": "Product 1",
        "name": "Product 1",
        "quantity": 1,
        "unit_price": 1100,
        "tax_rate": 240000,
    }
    assert lines[1].type == "shipping_fee"
    assert lines[1].unit_price == 490
    assert lines[2].type == "discount"
    assert lines[2].unit_price == -200


def test_identified_adjustments_are_merged():
    lines = build_adjustment_lines([
        _adj("promotion", "Summer", "-1.00", source_id="7"),
        _adj("promotion", "Summer", "-2.50", source_id="7"),
    ])
    assert len(lines) == 1
    assert lines[0].unit_price == -350
    assert lines[0].quantity == 1
    assert lines[0].tax_rate == 0


def test_same_source_id_different_type_not_merged():
    lines = build_adjustment_lines([
        _adj("promotion", "Promo", "-1.00", source_id="1"),
        _adj("shipping", "Ship", "3.00", source_id="1"),
    ])
    assert [line.unit_price for line in lines] == [-100, 300]


def test_positional_adjustments_never_merge():
    lines = build_adjustment_lines([
        _adj("fee", "Handling", "1.00"),
        _adj("fee", "Handling", "1.00"),
    ])
    assert len(lines) == 2
    assert all(line.type is None for line in lines)
    assert "type" not in lines[0].as_payload()


def test_tax_adjustments_are_skipped():
    lines = build_adjustment_lines([_adj("tax", "VAT", "2.13", source_id="vat")])
    assert lines == []


def test_sorted_by_weight_stable():
    lines = build_adjustment_lines([
        _adj("fee", "B", "1.00", weight=5),
        _adj("fee", "A", "1.00"),
        _adj("fee", "C", "1.00", weight=-1),
        _adj("fee", "D", "1.00"),
    ])
    assert [line.name for line in lines] == ["C", "A", "D", "B"]
