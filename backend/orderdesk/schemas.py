"""
Request schemas for the order engine.

Payloads are validated here before they reach the services, so the pricing
and lifecycle code only ever sees typed, well-formed input.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator

from orderdesk.models import OrderStatus, ShippingMethod

ALL = "ALL"


class OrderItemInput(BaseModel):
    """A line item as submitted by the order form."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    product_id: Optional[str] = Field(None, validation_alias=AliasChoices("productId", "product_id"))
    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "product_name"))
    quantity: int = Field(..., gt=0)
    cost_price: Decimal = Field(..., ge=0, decimal_places=2)
    selling_price: Decimal = Field(..., ge=0, decimal_places=2)


class OrderDetails(BaseModel):
    """Customer, shipping and note fields shared by create and edit."""
    model_config = ConfigDict(extra="forbid")

    customer_name: str = Field(..., min_length=1, max_length=255)
    mobile_number: str = Field(..., min_length=1, max_length=50)
    address: Optional[str] = None
    shipping_method: Optional[ShippingMethod] = None
    shipping_cost: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    notes: Optional[str] = None
    items: List[OrderItemInput] = Field(default_factory=list)
    status: Optional[OrderStatus] = None


class CreateOrderRequest(OrderDetails):
    """New order. Only an explicit DRAFT status skips the item requirement."""


class EditOrderRequest(OrderDetails):
    """Full replacement of an editable order. A missing status keeps the current one."""


class StatusChangeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class OrderFilter(BaseModel):
    """Filters shared by the order list and the export."""

    status: Optional[OrderStatus] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    shipping_method: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=200)

    @field_validator("status", "shipping_method", "search", mode="before")
    @classmethod
    def _blank_or_all_means_any(cls, value):
        if value is None:
            return None
        if isinstance(value, str) and (not value.strip() or value == ALL):
            return None
        return value


class ShippingQuoteRequest(BaseModel):
    weight_grams: Decimal = Field(..., ge=0)
    order_amount: Decimal = Field(Decimal("0"))
    shipping_method: str
