# backend/orderdesk/services/pricing.py
"""
Pricing Calculator
==================
Derives an order's financial totals from its line items.

    priced = price_items(request.items)
    priced.total_selling_price  # sum(selling_price * quantity)
    priced.total_cost_price     # sum(cost_price * quantity)
    priced.net_profit           # selling - cost

Pure functions, no I/O. Shipping is not part of profit here; it only
counts against profit when an order is returned (see order_lifecycle).
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Union

from orderdesk.exceptions import OrderValidationError
from orderdesk.schemas import OrderItemInput

ZERO = Decimal("0")
CENT = Decimal("0.01")  # Prices are stored as Numeric(10, 2)


@dataclass(frozen=True)
class PricedLineItem:
    """A line item with its computed total."""
    product_id: Optional[str]
    product_name: str
    quantity: int
    cost_price: Decimal
    selling_price: Decimal
    total_item_value: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.cost_price * self.quantity


@dataclass(frozen=True)
class PricedOrder:
    """Totals for a set of line items."""
    total_selling_price: Decimal = ZERO
    total_cost_price: Decimal = ZERO
    line_items: List[PricedLineItem] = field(default_factory=list)

    @property
    def net_profit(self) -> Decimal:
        return self.total_selling_price - self.total_cost_price


def _field(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, Mapping):
            if item.get(name) is not None:
                return item[name]
        elif getattr(item, name, None) is not None:
            return getattr(item, name)
    return None


def _decimal(value: Any, label: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise OrderValidationError(f"{label} must be a number, got {value!r}")
    if not amount.is_finite():
        raise OrderValidationError(f"{label} must be a finite number")
    if amount < 0:
        raise OrderValidationError(f"{label} cannot be negative")
    if amount != amount.quantize(CENT):
        raise OrderValidationError(f"{label} cannot have more than 2 decimal places")
    return amount


def _quantity(value: Any, name: str) -> int:
    try:
        quantity = Decimal(str(value))
    except InvalidOperation:
        raise OrderValidationError(f"Quantity for {name} must be a whole number")
    if not quantity.is_finite() or quantity != quantity.to_integral_value():
        raise OrderValidationError(f"Quantity for {name} must be a whole number")
    if quantity <= 0:
        raise OrderValidationError(f"Quantity for {name} must be at least 1")
    return int(quantity)


def price_line_item(item: Union[OrderItemInput, Mapping[str, Any]]) -> PricedLineItem:
    """Coerce one submitted item and compute its total."""
    name = _field(item, "name", "product_name")
    if not name:
        raise OrderValidationError("Every item needs a name")

    quantity = _quantity(_field(item, "quantity"), name)
    cost_price = _decimal(_field(item, "cost_price"), f"Cost price for {name}")
    selling_price = _decimal(_field(item, "selling_price"), f"Selling price for {name}")

    return PricedLineItem(
        product_id=_field(item, "product_id", "productId"),
        product_name=str(name),
        quantity=quantity,
        cost_price=cost_price,
        selling_price=selling_price,
        total_item_value=selling_price * quantity,
    )


def price_items(items: Optional[Iterable[Union[OrderItemInput, Mapping[str, Any]]]]) -> PricedOrder:
    """
    Price a list of items in submission order.

    An empty or missing list is valid (drafts) and yields zero totals.
    """
    line_items = [price_line_item(item) for item in (items or [])]

    return PricedOrder(
        total_selling_price=sum((li.total_item_value for li in line_items), ZERO),
        total_cost_price=sum((li.total_cost for li in line_items), ZERO),
        line_items=line_items,
    )
