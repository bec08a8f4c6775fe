# backend/tests/test_orders_api.py
"""
Tests for the HTTP layer: routing, auth, and error translation.
"""

import importlib
import warnings
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from pydantic import PydanticDeprecatedSince20

from orderdesk.auth_middleware import create_access_token
from orderdesk.database import get_db
from orderdesk.main import app
from orderdesk.models import OrderStatus, UserRole
from orderdesk.routers.dependencies import get_sweeper


def auth_headers(role=UserRole.STAFF, user_id="user-1"):
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def sweeper():
    return MagicMock()


@pytest_asyncio.fixture
async def client(session_factory, sweeper):
    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sweeper] = lambda: sweeper

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_requires_authentication(client):
    response = await client.get("/api/orders")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_rejects_tampered_token(client):
    response = await client.get("/api/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_and_fetch_order(client, two_item_payload):
    response = await client.post("/api/orders", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "PENDING"
    assert body["total_selling_price"] == 750
    assert body["total_cost_price"] == 500
    assert body["net_profit"] == 250
    assert len(body["items"]) == 2

    fetched = await client.get(f"/api/orders/{body['id']}", headers=auth_headers())
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]


@pytest.mark.asyncio
async def test_pending_order_needs_items(client, two_item_payload):
    two_item_payload["items"] = []

    response = await client.post("/api/orders", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 400
    assert "at least one item" in response.json()["detail"]


@pytest.mark.asyncio
async def test_unknown_fields_rejected(client, two_item_payload):
    two_item_payload["discount"] = 10

    response = await client.post("/api/orders", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_zero_quantity_rejected(client, two_item_payload):
    two_item_payload["items"][0]["quantity"] = 0

    response = await client.post("/api/orders", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_sub_cent_price_rejected(client, two_item_payload):
    two_item_payload["items"][0]["selling_price"] = 10.555

    response = await client.post("/api/orders", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_speed_post_dispatch_returns_delivered(client, seed_order):
    order_id = await seed_order(shipping_method="Speed Post")

    response = await client.patch(
        f"/api/orders/{order_id}/status", json={"status": "DISPATCHED"}, headers=auth_headers()
    )

    assert response.status_code == 200
    assert response.json()["status"] == "DELIVERED"


@pytest.mark.asyncio
async def test_invalid_status_rejected(client, seed_order):
    order_id = await seed_order()

    response = await client.patch(
        f"/api/orders/{order_id}/status", json={"status": "LOST"}, headers=auth_headers()
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_editing_delivered_order_is_rejected(client, seed_order, two_item_payload):
    order_id = await seed_order(status=OrderStatus.DELIVERED)

    response = await client.put(f"/api/orders/{order_id}", json=two_item_payload, headers=auth_headers())

    assert response.status_code == 400
    assert response.json()["detail"] == "Only PENDING or DRAFT orders can be edited"


@pytest.mark.asyncio
async def test_missing_order_is_404(client):
    response = await client.get("/api/orders/ORD-19990101-0000", headers=auth_headers())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_admin(client, seed_order):
    order_id = await seed_order()

    staff = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(UserRole.STAFF))
    assert staff.status_code == 403

    admin = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(UserRole.ADMIN, "admin-1"))
    assert admin.status_code == 200

    gone = await client.get(f"/api/orders/{order_id}", headers=auth_headers())
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_list_orders_triggers_sweep(client, seed_order, sweeper):
    await seed_order("ORD-20240101-1000")
    await seed_order("ORD-20240101-1001", status=OrderStatus.RETURNED, net_profit="-300")

    response = await client.get("/api/orders?status=ALL&limit=1", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert len(body["orders"]) == 1
    assert body["stats"] == {"total_sales": 1500, "total_profit": -50}
    sweeper.trigger.assert_called_once()


@pytest.mark.asyncio
async def test_list_orders_bad_page(client):
    response = await client.get("/api/orders?page=0", headers=auth_headers())
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_order_stats(client, seed_order):
    await seed_order()

    response = await client.get("/api/orders/stats", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["status_stats"]["PENDING"]["count"] == 1


@pytest.mark.asyncio
async def test_dashboard(client, seed_order):
    await seed_order()

    response = await client.get("/api/reports/dashboard", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["outstanding_revenue"] == 750
    assert body["status_counts"]["PENDING"] == 1


@pytest.mark.asyncio
async def test_export_csv(client, seed_order):
    await seed_order()

    response = await client.get("/api/reports/export?status=ALL", headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=orders_export_" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "Order ID,Date,Customer Name,Mobile,Address,Status,Total Sales,Net Profit,Shipping Cost,Items"
    assert lines[1].startswith("ORD-20240101-1000,")
    assert "Seeded Item (x1)" in lines[1]


@pytest.mark.asyncio
async def test_export_with_no_matches(client):
    response = await client.get("/api/reports/export", headers=auth_headers())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_shipping_quote(client):
    response = await client.post(
        "/api/shipping/quote",
        json={"weight_grams": 500, "order_amount": 0, "shipping_method": "COD"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json()["shipping_cost"] == 300


@pytest.mark.parametrize("module", ["orderdesk.config", "orderdesk.routers.orders"])
def test_models_use_v2_config(module):
    with warnings.catch_warnings():
        warnings.simplefilter("error", PydanticDeprecatedSince20)
        importlib.reload(importlib.import_module(module))
