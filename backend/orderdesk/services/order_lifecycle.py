# backend/orderdesk/services/order_lifecycle.py
"""
Order Lifecycle Rules.

States:
- DRAFT: saved before finalizing, items optional
- PENDING: finalized, awaiting dispatch
- DISPATCHED: handed to the carrier
- DELIVERED / RETURNED / CANCELLED: terminal

Status changes recompute net profit:
- RETURNED: the shipping cost is lost, net_profit = -shipping_cost
- anything else: net_profit = total_selling_price - total_cost_price

Speed Post parcels are never tracked as dispatched; a request to dispatch
one marks it delivered straight away.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from orderdesk.exceptions import InvalidOrderStateError, OrderValidationError
from orderdesk.models import OrderStatus, ShippingMethod

EDITABLE_STATUSES = frozenset({OrderStatus.DRAFT, OrderStatus.PENDING})
SWEEPABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.DISPATCHED)


@dataclass(frozen=True)
class StatusChange:
    """The effective outcome of a requested status change."""
    previous_status: OrderStatus
    previous_net_profit: Decimal
    requested_status: OrderStatus
    status: OrderStatus
    net_profit: Decimal

    @property
    def carrier_override(self) -> bool:
        return self.status != self.requested_status


def effective_status(requested: OrderStatus, shipping_method: Optional[str]) -> OrderStatus:
    """Apply the carrier override for Speed Post dispatches."""
    if requested == OrderStatus.DISPATCHED and shipping_method == ShippingMethod.SPEED_POST.value:
        return OrderStatus.DELIVERED
    return requested


def profit_for(status: OrderStatus, total_selling_price: Decimal, total_cost_price: Decimal,
               shipping_cost: Decimal) -> Decimal:
    if status == OrderStatus.RETURNED:
        return -Decimal(shipping_cost or 0)
    return Decimal(total_selling_price or 0) - Decimal(total_cost_price or 0)


def resolve_status_change(order, requested: OrderStatus) -> StatusChange:
    """
    Work out the status and net profit an order ends up with.

    Any current status may move to any requested status; the table only
    decides the effective target and the profit that goes with it.
    """
    requested = OrderStatus(requested)
    status = effective_status(requested, order.shipping_method)
    return StatusChange(
        previous_status=OrderStatus(order.status),
        previous_net_profit=order.net_profit,
        requested_status=requested,
        status=status,
        net_profit=profit_for(status, order.total_selling_price, order.total_cost_price, order.shipping_cost),
    )


def initial_status(requested: Optional[OrderStatus]) -> OrderStatus:
    """New orders are drafts only when explicitly asked; otherwise pending."""
    return OrderStatus.DRAFT if requested == OrderStatus.DRAFT else OrderStatus.PENDING


def ensure_editable(order) -> None:
    if order.status not in EDITABLE_STATUSES:
        raise InvalidOrderStateError(
            "Only PENDING or DRAFT orders can be edited",
            order_id=order.id,
            status=OrderStatus(order.status).value,
        )


def require_items_for(status: OrderStatus, items: Optional[Sequence]) -> None:
    if status == OrderStatus.PENDING and not items:
        raise OrderValidationError("Order must contain at least one item")
