# backend/orderdesk/services/shipping.py
"""
Shipping Cost Calculator
========================
Suggests a shipping fee from parcel weight, order amount and shipping method.

- Speed Post / Post: postage only (weight-tiered)
- COD: postage + tiered commission on the order amount + handling fee
- Pickup and anything else: free

The result is a suggestion for the order form. Orders persist whatever
shipping_cost the operator submits.
"""

import logging
import math
from decimal import Decimal
from typing import Union

from orderdesk.exceptions import OrderValidationError
from orderdesk.models import ShippingMethod

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal, str]

COD_HANDLING_FEE = Decimal("50")

# (max weight in grams inclusive, postage)
POSTAGE_TIERS = [
    (250, Decimal("200")),
    (500, Decimal("250")),
    (1000, Decimal("300")),
    (2000, Decimal("400")),
    (3000, Decimal("450")),
    (4000, Decimal("500")),
    (5000, Decimal("550")),
    (6000, Decimal("600")),
    (7000, Decimal("650")),
    (8000, Decimal("700")),
    (9000, Decimal("750")),
    (10000, Decimal("800")),
    (15000, Decimal("850")),
    (20000, Decimal("1100")),
    (25000, Decimal("1600")),
    (30000, Decimal("2100")),
    (35000, Decimal("2600")),
    (40000, Decimal("3100")),
]
MAX_POSTAGE = POSTAGE_TIERS[-1][1]

# (tier floor, tier ceiling, step, rate per started step)
COMMISSION_TIERS = [
    (Decimal("0"), Decimal("2000"), Decimal("100"), Decimal("2")),
    (Decimal("2000"), Decimal("10000"), Decimal("2000"), Decimal("10")),
    (Decimal("10000"), Decimal("50000"), Decimal("4000"), Decimal("50")),
    (Decimal("50000"), Decimal("100000"), Decimal("5000"), Decimal("100")),
]
COMMISSION_CEILING = COMMISSION_TIERS[-1][1]

POSTAGE_METHODS = {ShippingMethod.SPEED_POST.value, "Post"}


def _to_decimal(value: Number, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except ArithmeticError:
        raise OrderValidationError(f"{field} must be a number, got {value!r}")


def _ceil_div(amount: Decimal, step: Decimal) -> int:
    return math.ceil(amount / step)


def calculate_postage(weight_grams: Number) -> Decimal:
    """Look up postage for a parcel weight. Weights above 40kg stay on the top tier."""
    weight = _to_decimal(weight_grams, "weight")
    if weight < 0:
        raise OrderValidationError("weight cannot be negative")

    for max_weight, postage in POSTAGE_TIERS:
        if weight <= max_weight:
            return postage
    return MAX_POSTAGE


def calculate_commission(order_amount: Number) -> Decimal:
    """
    COD commission on the order amount.

    Each tier charges its rate for every started step of the amount that falls
    inside it, and tiers accumulate. Amounts above 100,000 are capped at the
    100,000 total.
    """
    amount = _to_decimal(order_amount, "order amount")
    if amount <= 0:
        return Decimal("0")

    if amount > COMMISSION_CEILING:
        logger.warning(f"COD amount {amount} exceeds commission schedule, capping at {COMMISSION_CEILING}")
        amount = COMMISSION_CEILING

    commission = Decimal("0")
    for floor, ceiling, step, rate in COMMISSION_TIERS:
        if amount <= floor:
            break
        in_tier = min(amount, ceiling) - floor
        commission += _ceil_div(in_tier, step) * rate
    return commission


def calculate_shipping(weight_grams: Number, order_amount: Number, method: str) -> Decimal:
    """Suggested shipping fee for the given parcel and method."""
    method = getattr(method, "value", method)
    if method in POSTAGE_METHODS:
        return calculate_postage(weight_grams)
    if method == ShippingMethod.COD.value:
        return calculate_postage(weight_grams) + calculate_commission(order_amount) + COD_HANDLING_FEE
    return Decimal("0")
