# backend/orderdesk/services/reporting.py
"""
Reporting Service
=================
Read-only aggregates over persisted orders for the dashboard, the order
list header and the CSV export.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderdesk.models import Order, OrderStatus
from orderdesk.schemas import OrderFilter
from orderdesk.services.orders import order_filter_conditions

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Returned and cancelled orders never turn into cash
UNREALIZED_STATUSES = (OrderStatus.RETURNED, OrderStatus.CANCELLED)
OUTSTANDING_STATUSES = (OrderStatus.PENDING, OrderStatus.DISPATCHED)

EXPORT_COLUMNS = [
    "Order ID",
    "Date",
    "Customer Name",
    "Mobile",
    "Address",
    "Status",
    "Total Sales",
    "Net Profit",
    "Shipping Cost",
    "Items",
]


def _money(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _date_conditions(start_date: Optional[date], end_date: Optional[date]) -> list:
    return order_filter_conditions(OrderFilter(start_date=start_date, end_date=end_date))


class ReportingService:
    """Aggregations for dashboards and exports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _sum_selling(self, *conditions) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Order.total_selling_price), 0)).where(*conditions)
        )
        return _money(result.scalar())

    async def get_order_stats(self) -> Dict[str, Any]:
        """Per-status count, sales and profit, plus overall totals."""
        result = await self.db.execute(
            select(
                Order.status,
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_selling_price), 0),
                func.coalesce(func.sum(Order.net_profit), 0),
            ).group_by(Order.status)
        )

        status_stats = {}
        total_sales = ZERO
        total_profit = ZERO
        for status, count, sales, profit in result.all():
            status_stats[OrderStatus(status).value] = {
                "count": count,
                "total": _money(sales),
                "profit": _money(profit),
            }
            total_sales += _money(sales)
            total_profit += _money(profit)

        return {
            "status_stats": status_stats,
            "total_sales": total_sales,
            "total_profit": total_profit,
        }

    async def get_dashboard_stats(self, start_date: Optional[date] = None,
                                  end_date: Optional[date] = None) -> Dict[str, Any]:
        """
        Dashboard headline numbers for an optional date range.

        - total_sales: realized sales (not returned, not cancelled)
        - total_profit: every order, so return losses are included
        - status_counts: every status, zero-filled
        - outstanding_revenue: sales still to be collected (pending + dispatched)
        """
        dates = _date_conditions(start_date, end_date)

        total_sales = await self._sum_selling(Order.status.not_in(UNREALIZED_STATUSES), *dates)

        profit_result = await self.db.execute(
            select(func.coalesce(func.sum(Order.net_profit), 0)).where(*dates)
        )
        total_profit = _money(profit_result.scalar())

        counts_result = await self.db.execute(
            select(Order.status, func.count(Order.id)).where(*dates).group_by(Order.status)
        )
        status_counts = {status.value: 0 for status in OrderStatus}
        for status, count in counts_result.all():
            status_counts[OrderStatus(status).value] = count

        outstanding_revenue = await self._sum_selling(Order.status.in_(OUTSTANDING_STATUSES), *dates)

        return {
            "total_sales": total_sales,
            "total_profit": total_profit,
            "status_counts": status_counts,
            "outstanding_revenue": outstanding_revenue,
        }

    async def export_orders(self, order_filter: OrderFilter) -> List[Dict[str, Any]]:
        """
        Every order matching the filter as a flat row, newest first.
        Pagination fields on the filter are ignored.
        """
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(*order_filter_conditions(order_filter))
            .order_by(Order.created_at.desc())
        )
        orders = result.scalars().all()

        rows = []
        for order in orders:
            rows.append({
                "Order ID": order.id,
                "Date": order.created_at.strftime("%Y-%m-%d %H:%M"),
                "Customer Name": order.customer_name,
                "Mobile": order.mobile_number,
                "Address": order.address or "",
                "Status": OrderStatus(order.status).value,
                "Total Sales": _money(order.total_selling_price),
                "Net Profit": _money(order.net_profit),
                "Shipping Cost": _money(order.shipping_cost),
                "Items": ", ".join(f"{item.product_name} (x{item.quantity})" for item in order.items),
            })

        logger.info(f"Exported {len(rows)} orders")
        return rows
