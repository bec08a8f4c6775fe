"""
Shipping API Router.

Suggests a shipping fee for the order form. The order keeps whatever fee
the operator finally submits.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from orderdesk.auth_middleware import Actor, get_current_user
from orderdesk.schemas import ShippingQuoteRequest
from orderdesk.services.shipping import calculate_shipping

router = APIRouter()


class ShippingQuoteResponse(BaseModel):
    shipping_method: str
    shipping_cost: float


@router.post("/quote", response_model=ShippingQuoteResponse)
async def quote_shipping(
    payload: ShippingQuoteRequest,
    actor: Actor = Depends(get_current_user),
):
    cost = calculate_shipping(payload.weight_grams, payload.order_amount, payload.shipping_method)
    return ShippingQuoteResponse(shipping_method=payload.shipping_method, shipping_cost=cost)
