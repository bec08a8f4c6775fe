"""
Router Dependencies
====================

Shared FastAPI dependencies that wire services to the request's session.
"""

from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.database import get_db, async_session_maker
from orderdesk.schemas import OrderFilter
from orderdesk.services.auto_delivery import AutoDeliverySweeper
from orderdesk.services.orders import OrderService
from orderdesk.services.reporting import ReportingService


@lru_cache()
def get_sweeper() -> AutoDeliverySweeper:
    """Process-wide sweeper so concurrent list requests share one sweep."""
    return AutoDeliverySweeper(async_session_maker)


async def get_order_service(
    db: AsyncSession = Depends(get_db),
    sweeper: AutoDeliverySweeper = Depends(get_sweeper),
) -> OrderService:
    return OrderService(db, sweeper=sweeper)


async def get_reporting_service(db: AsyncSession = Depends(get_db)) -> ReportingService:
    return ReportingService(db)


async def get_order_filter(
    status: Optional[str] = Query(None, description="Order status or ALL"),
    search: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    shipping_method: Optional[str] = Query(None, description="Shipping method or ALL"),
    page: int = Query(1),
    limit: int = Query(20),
) -> OrderFilter:
    """
    Build an OrderFilter from query parameters.

    Raises:
        HTTPException(422): If any parameter fails validation.
    """
    try:
        return OrderFilter(
            status=status,
            search=search,
            start_date=start_date,
            end_date=end_date,
            shipping_method=shipping_method,
            page=page,
            page_size=limit,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))
