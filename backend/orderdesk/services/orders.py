# backend/orderdesk/services/orders.py
"""
Order Service
=============
Create, edit, status-change, delete and list orders.

Every write runs as one transaction: item replacement, order update and the
audit entry commit together or not at all. Concurrent writes to the same
order are last-writer-wins; there is no optimistic locking.
"""

import logging
import math
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderdesk.config import get_settings
from orderdesk.exceptions import OrderNotFoundError, OrderStorageError
from orderdesk.models import Order, OrderItem, OrderStatus, ShippingMethod
from orderdesk.schemas import CreateOrderRequest, EditOrderRequest, OrderFilter
from orderdesk.services.audit_logger import AuditLogger, AuditAction, snapshot_order
from orderdesk.services.order_lifecycle import (
    ensure_editable,
    initial_status,
    require_items_for,
    resolve_status_change,
)
from orderdesk.services.pricing import PricedOrder, price_items

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class OrderPage:
    """One page of orders plus totals over the whole filter."""
    orders: List[Order]
    total: int
    page: int
    total_pages: int
    total_sales: Decimal = Decimal("0")
    total_profit: Decimal = Decimal("0")
    stats: dict = field(init=False)

    def __post_init__(self):
        self.stats = {"total_sales": self.total_sales, "total_profit": self.total_profit}


def generate_order_id(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-NNNN with a random 4-digit suffix; not collision free."""
    now = now or datetime.utcnow()
    return f"ORD-{now:%Y%m%d}-{random.randint(1000, 9999)}"


def order_filter_conditions(order_filter: OrderFilter) -> list:
    """Translate an OrderFilter into SQLAlchemy where clauses."""
    conditions = []

    if order_filter.status:
        conditions.append(Order.status == order_filter.status)

    if order_filter.shipping_method:
        conditions.append(Order.shipping_method == order_filter.shipping_method)

    # Whole days, inclusive on both ends
    if order_filter.start_date:
        conditions.append(Order.created_at >= datetime.combine(order_filter.start_date, time.min))
    if order_filter.end_date:
        conditions.append(Order.created_at < datetime.combine(order_filter.end_date + timedelta(days=1), time.min))

    if order_filter.search:
        term = order_filter.search.strip()
        conditions.append(or_(
            Order.id.icontains(term, autoescape=True),
            Order.customer_name.icontains(term, autoescape=True),
            Order.mobile_number.icontains(term, autoescape=True),
            Order.address.icontains(term, autoescape=True),
        ))

    return conditions


class OrderService:
    """
    Order lifecycle operations over a single session.

    The sweeper is optional; when present, listing orders kicks off a
    background auto-delivery sweep without waiting for it.
    """

    def __init__(self, db: AsyncSession, sweeper=None, max_id_attempts: Optional[int] = None):
        self.db = db
        self.sweeper = sweeper
        self.max_id_attempts = max_id_attempts or settings.ORDER_ID_MAX_ATTEMPTS

    @asynccontextmanager
    async def _atomic(self, operation: str):
        """Commit on success; roll back on any failure."""
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {operation}: {e}")
            raise OrderStorageError(f"Failed to {operation}") from e
        except Exception:
            await self.db.rollback()
            raise

    async def _load(self, order_id: str) -> Order:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _allocate_order_id(self) -> str:
        for attempt in range(1, self.max_id_attempts + 1):
            candidate = generate_order_id()
            if await self.db.get(Order, candidate) is None:
                return candidate
            logger.warning(f"Order id {candidate} already taken, regenerating (attempt {attempt})")
        raise OrderStorageError(f"Could not allocate a unique order id after {self.max_id_attempts} attempts")

    @staticmethod
    def _build_items(priced: PricedOrder) -> List[OrderItem]:
        return [
            OrderItem(
                product_id=line.product_id,
                line_number=index,
                product_name=line.product_name,
                quantity=line.quantity,
                cost_price=line.cost_price,
                selling_price=line.selling_price,
                total_item_value=line.total_item_value,
            )
            for index, line in enumerate(priced.line_items)
        ]

    async def get_order(self, order_id: str) -> Order:
        """Fetch an order with its items."""
        return await self._load(order_id)

    async def create_order(self, request: CreateOrderRequest, acting_user_id: Optional[str] = None) -> Order:
        """
        Create a DRAFT or PENDING order.

        Drafts may have no items; everything else needs at least one.
        Net profit at creation is selling - cost; shipping is not charged.
        """
        status = initial_status(request.status)
        require_items_for(status, request.items)
        priced = price_items(request.items)

        async with self._atomic("create order"):
            order = Order(
                id=await self._allocate_order_id(),
                customer_name=request.customer_name,
                mobile_number=request.mobile_number,
                address=request.address,
                shipping_method=(request.shipping_method or ShippingMethod.COD).value,
                shipping_cost=request.shipping_cost or Decimal("0"),
                total_selling_price=priced.total_selling_price,
                total_cost_price=priced.total_cost_price,
                net_profit=priced.net_profit,
                status=status,
                notes=request.notes or None,
                created_by_id=acting_user_id,
                items=self._build_items(priced),
            )
            self.db.add(order)
            await self.db.flush()

        logger.info(
            f"Created {status.value} order {order.id} with {len(order.items)} items "
            f"(sales {priced.total_selling_price}, profit {priced.net_profit})"
        )
        return order

    async def edit_order(self, order_id: str, request: EditOrderRequest,
                         acting_user_id: Optional[str] = None) -> Order:
        """
        Replace an editable order's details and items.

        Items are deleted and recreated rather than diffed, and all totals are
        recomputed from the new items.
        """
        async with self._atomic("edit order"):
            order = await self._load(order_id)
            ensure_editable(order)

            status = request.status or order.status
            require_items_for(status, request.items)
            priced = price_items(request.items)

            before = snapshot_order(order)

            order.items.clear()
            await self.db.flush()
            order.items.extend(self._build_items(priced))

            order.customer_name = request.customer_name
            order.mobile_number = request.mobile_number
            order.address = request.address
            if request.shipping_method:
                order.shipping_method = request.shipping_method.value
            order.shipping_cost = request.shipping_cost or Decimal("0")
            order.status = status
            order.notes = request.notes or None
            order.total_selling_price = priced.total_selling_price
            order.total_cost_price = priced.total_cost_price
            order.net_profit = priced.net_profit
            await self.db.flush()

            await AuditLogger.log(
                self.db,
                action=AuditAction.EDIT_ORDER,
                target_id=order.id,
                user_id=acting_user_id,
                previous=before,
                new=snapshot_order(order),
            )

        logger.info(f"Edited order {order.id} ({before['status']} -> {order.status.value})")
        return order

    async def change_status(self, order_id: str, requested_status: OrderStatus,
                            acting_user_id: Optional[str] = None) -> Order:
        """Move an order to a new status and recompute its net profit."""
        async with self._atomic("update order status"):
            order = await self._load(order_id)
            change = resolve_status_change(order, requested_status)

            order.status = change.status
            order.net_profit = change.net_profit
            await self.db.flush()

            await AuditLogger.log(
                self.db,
                action=AuditAction.UPDATE_ORDER_STATUS,
                target_id=order.id,
                user_id=acting_user_id,
                previous={"status": change.previous_status, "net_profit": change.previous_net_profit},
                new={"status": change.status, "net_profit": change.net_profit},
            )

        if change.carrier_override:
            logger.info(f"Order {order.id} ships by {order.shipping_method}; {change.requested_status.value} recorded as {change.status.value}")
        logger.info(f"Order {order.id} status {change.previous_status.value} -> {change.status.value}")
        return order

    async def delete_order(self, order_id: str, acting_user_id: Optional[str] = None) -> None:
        """
        Delete an order and its items. Callers must check admin rights first.
        """
        async with self._atomic("delete order"):
            order = await self._load(order_id)

            order.items.clear()
            await self.db.flush()

            await AuditLogger.log(
                self.db,
                action=AuditAction.DELETE_ORDER,
                target_id=order.id,
                user_id=acting_user_id,
                previous={"id": order.id},
            )

            await self.db.delete(order)
            await self.db.flush()

        logger.info(f"Deleted order {order_id} by user {acting_user_id}")

    async def list_orders(self, order_filter: OrderFilter) -> OrderPage:
        """
        Newest-first page of orders matching the filter, with sales and
        profit totals over every matching order.
        """
        if self.sweeper is not None:
            self.sweeper.trigger()

        conditions = order_filter_conditions(order_filter)
        offset = (order_filter.page - 1) * order_filter.page_size

        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(*conditions)
            .order_by(Order.created_at.desc())
            .offset(offset)
            .limit(order_filter.page_size)
        )
        orders = list(result.scalars().all())

        total = (await self.db.execute(
            select(func.count(Order.id)).where(*conditions)
        )).scalar() or 0

        totals = (await self.db.execute(
            select(
                func.coalesce(func.sum(Order.total_selling_price), 0),
                func.coalesce(func.sum(Order.net_profit), 0),
            ).where(*conditions)
        )).one()

        return OrderPage(
            orders=orders,
            total=total,
            page=order_filter.page,
            total_pages=math.ceil(total / order_filter.page_size),
            total_sales=Decimal(str(totals[0])),
            total_profit=Decimal(str(totals[1])),
        )
