"""
Orders API Router.

Thin HTTP layer over OrderService; all business rules live in the services.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from orderdesk.auth_middleware import Actor, get_current_user, require_admin
from orderdesk.models import OrderStatus
from orderdesk.routers.dependencies import get_order_filter, get_order_service, get_reporting_service
from orderdesk.schemas import CreateOrderRequest, EditOrderRequest, OrderFilter, StatusChangeRequest
from orderdesk.services.orders import OrderService
from orderdesk.services.reporting import ReportingService

router = APIRouter()


class OrderItemResponse(BaseModel):
    """Response model for order line items."""
    id: str
    product_id: Optional[str]
    product_name: str
    quantity: int
    cost_price: float
    selling_price: float
    total_item_value: float

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Response model for orders."""
    id: str
    customer_name: str
    mobile_number: str
    address: Optional[str]
    shipping_method: str
    shipping_cost: float
    total_selling_price: float
    total_cost_price: float
    net_profit: float
    status: OrderStatus
    notes: Optional[str]
    created_at: datetime
    created_by_id: Optional[str]
    items: List[OrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class OrderListStats(BaseModel):
    total_sales: float
    total_profit: float


class OrderListResponse(BaseModel):
    """Response model for order list."""
    orders: List[OrderResponse]
    total: int
    page: int
    total_pages: int
    stats: OrderListStats


class StatusStat(BaseModel):
    count: int
    total: float
    profit: float


class OrderStatsResponse(BaseModel):
    status_stats: dict[str, StatusStat]
    total_sales: float
    total_profit: float


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    payload: CreateOrderRequest,
    actor: Actor = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Create a draft or pending order."""
    return await service.create_order(payload, acting_user_id=actor.user_id)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    order_filter: OrderFilter = Depends(get_order_filter),
    actor: Actor = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """
    List orders newest first with filter-wide sales and profit totals.
    Also kicks off the Speed Post auto-delivery sweep in the background.
    """
    page = await service.list_orders(order_filter)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(o) for o in page.orders],
        total=page.total,
        page=page.page,
        total_pages=page.total_pages,
        stats=OrderListStats(**page.stats),
    )


@router.get("/stats", response_model=OrderStatsResponse)
async def get_order_stats(
    actor: Actor = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting_service),
):
    """Count, sales and profit grouped by status."""
    return await reporting.get_order_stats()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.get_order(order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def edit_order(
    order_id: str,
    payload: EditOrderRequest,
    actor: Actor = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Replace a DRAFT or PENDING order's details and items."""
    return await service.edit_order(order_id, payload, acting_user_id=actor.user_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: StatusChangeRequest,
    actor: Actor = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.change_status(order_id, payload.status, acting_user_id=actor.user_id)


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    actor: Actor = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Delete an order and its items (admin only)."""
    await service.delete_order(order_id, acting_user_id=actor.user_id)
    return {"message": "Order deleted successfully"}
