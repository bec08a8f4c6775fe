"""
Reports API Router.

Dashboard figures and the CSV order export.
"""

import csv
import io
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from orderdesk.auth_middleware import Actor, get_current_user
from orderdesk.routers.dependencies import get_order_filter, get_reporting_service
from orderdesk.schemas import OrderFilter
from orderdesk.services.reporting import EXPORT_COLUMNS, ReportingService

router = APIRouter()


class DashboardResponse(BaseModel):
    total_sales: float
    total_profit: float
    status_counts: dict[str, int]
    outstanding_revenue: float


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard_stats(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    actor: Actor = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting_service),
):
    """Realized sales, profit including return losses, status counts and outstanding revenue."""
    return await reporting.get_dashboard_stats(start_date=start_date, end_date=end_date)


@router.get("/export")
async def export_orders(
    order_filter: OrderFilter = Depends(get_order_filter),
    actor: Actor = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting_service),
):
    """Download matching orders as CSV."""
    rows = await reporting.export_orders(order_filter)
    if not rows:
        raise HTTPException(status_code=404, detail="No orders found for the selected criteria")

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)

    filename = f"orders_export_{datetime.utcnow():%Y%m%d%H%M%S}.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
