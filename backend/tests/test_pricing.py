# backend/tests/test_pricing.py
"""
Tests for the Pricing Calculator.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from orderdesk.exceptions import OrderValidationError
from orderdesk.schemas import OrderItemInput
from orderdesk.services.pricing import price_items, price_line_item


def test_totals_from_items():
    priced = price_items([
        {"name": "Toner", "quantity": 3, "cost_price": 100, "selling_price": 150},
        {"name": "Gel", "quantity": 1, "cost_price": 200, "selling_price": 300},
    ])

    assert priced.total_selling_price == Decimal("750")
    assert priced.total_cost_price == Decimal("500")
    assert priced.net_profit == Decimal("250")
    assert [li.total_item_value for li in priced.line_items] == [Decimal("450"), Decimal("300")]


def test_empty_items_yield_zero_totals():
    for items in ([], None):
        priced = price_items(items)
        assert priced.total_selling_price == Decimal("0")
        assert priced.total_cost_price == Decimal("0")
        assert priced.net_profit == Decimal("0")
        assert priced.line_items == []


def test_coerces_strings_and_keeps_order():
    priced = price_items([
        {"name": "B", "quantity": "2", "cost_price": "10.50", "selling_price": "19.99"},
        {"name": "A", "quantity": 1, "cost_price": 1, "selling_price": 2},
    ])

    assert [li.product_name for li in priced.line_items] == ["B", "A"]
    assert priced.line_items[0].quantity == 2
    assert priced.line_items[0].total_item_value == Decimal("39.98")
    assert priced.total_cost_price == Decimal("22.00")


def test_accepts_both_item_spellings():
    """The edit form sends product_id/product_name, the create form productId/name."""
    camel = price_line_item({"productId": "p-1", "name": "Soap", "quantity": 1, "cost_price": 1, "selling_price": 2})
    snake = price_line_item({"product_id": "p-1", "product_name": "Soap", "quantity": 1, "cost_price": 1, "selling_price": 2})

    assert camel == snake
    assert camel.product_id == "p-1"


def test_accepts_validated_inputs():
    item = OrderItemInput.model_validate(
        {"productId": "p-9", "name": "Serum", "quantity": 2, "cost_price": "400", "selling_price": "650"}
    )
    priced = price_items([item])

    assert priced.line_items[0].product_id == "p-9"
    assert priced.total_selling_price == Decimal("1300")


@pytest.mark.parametrize("quantity", [0, -1, "abc", 1.5, None])
def test_rejects_bad_quantities(quantity):
    with pytest.raises(OrderValidationError):
        price_items([{"name": "Soap", "quantity": quantity, "cost_price": 1, "selling_price": 2}])


def test_rejects_negative_prices():
    with pytest.raises(OrderValidationError):
        price_items([{"name": "Soap", "quantity": 1, "cost_price": -1, "selling_price": 2}])


def test_rejects_nameless_items():
    with pytest.raises(OrderValidationError):
        price_items([{"quantity": 1, "cost_price": 1, "selling_price": 2}])


@pytest.mark.parametrize("field", ["cost_price", "selling_price"])
def test_rejects_sub_cent_prices(field):
    item = {"name": "Toner", "quantity": 3, "cost_price": "1.00", "selling_price": "10.55"}
    item[field] = "10.555"

    with pytest.raises(OrderValidationError):
        price_line_item(item)

    with pytest.raises(ValidationError):
        OrderItemInput.model_validate(item)


def test_trailing_zeros_are_whole_cents():
    line = price_line_item({"name": "Toner", "quantity": 3, "cost_price": "1.000", "selling_price": "10.550"})

    assert line.total_item_value == Decimal("31.65")
