# backend/tests/conftest.py
"""
Shared fixtures: a fresh SQLite database per test and helpers to seed orders.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-prod")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from orderdesk.models import Base, Order, OrderItem, OrderStatus


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a throwaway SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def two_item_payload():
    """Three units at 100/150 plus one unit at 200/300: sales 750, cost 500."""
    return {
        "customer_name": "Nimal Perera",
        "mobile_number": "0771234567",
        "address": "12 Galle Road, Colombo 03",
        "shipping_method": "COD",
        "shipping_cost": "300",
        "items": [
            {"productId": None, "name": "Rose Water Toner", "quantity": 3, "cost_price": 100, "selling_price": 150},
            {"name": "Aloe Gel", "quantity": 1, "cost_price": 200, "selling_price": 300},
        ],
    }


@pytest.fixture
def seed_order(session_factory):
    """Insert an order directly, bypassing the service (for backdating and odd states)."""

    async def _seed(
        order_id: str = "ORD-20240101-1000",
        status: OrderStatus = OrderStatus.PENDING,
        shipping_method: str = "COD",
        created_at: datetime | None = None,
        selling: str = "750",
        cost: str = "500",
        shipping_cost: str = "300",
        net_profit: str | None = None,
        customer_name: str = "Seeded Customer",
    ) -> str:
        async with session_factory() as session:
            session.add(Order(
                id=order_id,
                customer_name=customer_name,
                mobile_number="0700000000",
                shipping_method=shipping_method,
                shipping_cost=Decimal(shipping_cost),
                total_selling_price=Decimal(selling),
                total_cost_price=Decimal(cost),
                net_profit=Decimal(net_profit) if net_profit is not None else Decimal(selling) - Decimal(cost),
                status=status,
                created_at=created_at or datetime.utcnow(),
                items=[OrderItem(
                    product_name="Seeded Item",
                    quantity=1,
                    cost_price=Decimal(cost),
                    selling_price=Decimal(selling),
                    total_item_value=Decimal(selling),
                )],
            ))
            await session.commit()
        return order_id

    return _seed
