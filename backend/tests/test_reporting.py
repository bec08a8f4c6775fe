# backend/tests/test_reporting.py
"""
Tests for order statistics, dashboard figures and export rows.
"""

from datetime import datetime, date
from decimal import Decimal

import pytest

from orderdesk.models import OrderStatus
from orderdesk.schemas import CreateOrderRequest, OrderFilter
from orderdesk.services.orders import OrderService
from orderdesk.services.reporting import EXPORT_COLUMNS, ReportingService


@pytest.fixture
def mixed_orders(seed_order):
    async def _seed():
        await seed_order("ORD-1", OrderStatus.PENDING, created_at=datetime(2024, 2, 1, 10, 0))
        await seed_order("ORD-2", OrderStatus.DISPATCHED, created_at=datetime(2024, 2, 2, 10, 0),
                         selling="1000", cost="600")
        await seed_order("ORD-3", OrderStatus.DELIVERED, created_at=datetime(2024, 2, 3, 10, 0))
        await seed_order("ORD-4", OrderStatus.RETURNED, created_at=datetime(2024, 2, 4, 10, 0), net_profit="-300")
        await seed_order("ORD-5", OrderStatus.CANCELLED, created_at=datetime(2024, 3, 1, 10, 0))
    return _seed


@pytest.mark.asyncio
async def test_order_stats_by_status(db, mixed_orders):
    await mixed_orders()

    stats = await ReportingService(db).get_order_stats()

    assert stats["status_stats"]["DISPATCHED"] == {"count": 1, "total": Decimal("1000"), "profit": Decimal("400")}
    assert stats["status_stats"]["RETURNED"]["profit"] == Decimal("-300")
    assert "DRAFT" not in stats["status_stats"]
    assert stats["total_sales"] == Decimal("4000")
    assert stats["total_profit"] == Decimal("850")


@pytest.mark.asyncio
async def test_dashboard_stats(db, mixed_orders):
    await mixed_orders()

    stats = await ReportingService(db).get_dashboard_stats()

    # Realized sales skip returned and cancelled orders
    assert stats["total_sales"] == Decimal("2500")
    # Profit includes the return loss
    assert stats["total_profit"] == Decimal("850")
    assert stats["outstanding_revenue"] == Decimal("1750")
    assert stats["status_counts"] == {
        "DRAFT": 0,
        "PENDING": 1,
        "DISPATCHED": 1,
        "DELIVERED": 1,
        "RETURNED": 1,
        "CANCELLED": 1,
    }


@pytest.mark.asyncio
async def test_dashboard_date_range(db, mixed_orders):
    await mixed_orders()

    stats = await ReportingService(db).get_dashboard_stats(start_date=date(2024, 2, 2), end_date=date(2024, 2, 4))

    assert stats["total_sales"] == Decimal("1750")
    assert stats["total_profit"] == Decimal("350")
    assert stats["outstanding_revenue"] == Decimal("1000")
    assert stats["status_counts"]["PENDING"] == 0
    assert stats["status_counts"]["CANCELLED"] == 0


@pytest.mark.asyncio
async def test_dashboard_with_no_orders(db):
    stats = await ReportingService(db).get_dashboard_stats()

    assert stats["total_sales"] == Decimal("0")
    assert stats["total_profit"] == Decimal("0")
    assert set(stats["status_counts"].values()) == {0}


@pytest.mark.asyncio
async def test_export_rows(db, two_item_payload):
    order = await OrderService(db).create_order(CreateOrderRequest(**two_item_payload))

    rows = await ReportingService(db).export_orders(OrderFilter())

    assert len(rows) == 1
    row = rows[0]
    assert list(row.keys()) == EXPORT_COLUMNS
    assert row["Order ID"] == order.id
    assert row["Status"] == "PENDING"
    assert row["Total Sales"] == Decimal("750")
    assert row["Net Profit"] == Decimal("250")
    assert row["Shipping Cost"] == Decimal("300")
    assert row["Items"] == "Rose Water Toner (x3), Aloe Gel (x1)"
    assert row["Date"] == order.created_at.strftime("%Y-%m-%d %H:%M")


@pytest.mark.asyncio
async def test_export_respects_filter(db, mixed_orders):
    await mixed_orders()

    rows = await ReportingService(db).export_orders(OrderFilter(status="RETURNED", page_size=1))
    assert [r["Order ID"] for r in rows] == ["ORD-4"]

    rows = await ReportingService(db).export_orders(OrderFilter(start_date=date(2024, 2, 1), end_date=date(2024, 2, 28)))
    assert [r["Order ID"] for r in rows] == ["ORD-4", "ORD-3", "ORD-2", "ORD-1"]
