from uuid import uuid4

import httpx
import pytest

from inventory_api.core.config import settings
from inventory_api.dependencies.auth import get_current_user
from inventory_api.main import create_app
from inventory_api.models.user import UserRole
from inventory_api.store.memory import MemoryStore


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_record_movement(client, make_item):
    item = make_item(100)

    r = await client.post("/movements/", json={
        "item_id": str(item.id), "type": "IN", "quantity": 50, "reason": "Restock",
    })

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["quantity_before"] == 100
    assert body["quantity_after"] == 150
    assert body["item"]["quantity"] == 150
    assert body["user"]["username"] == "clerk"


async def test_insufficient_stock_is_400(client, store, make_item):
    item = make_item(100)

    r = await client.post("/movements/", json={"item_id": str(item.id), "type": "OUT", "quantity": 150})

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "INSUFFICIENT_STOCK"
    assert (detail["available"], detail["requested"]) == (100, 150)
    assert store.movements == []


async def test_unknown_item_is_404(client):
    r = await client.post("/movements/", json={"item_id": str(uuid4()), "type": "IN", "quantity": 1})
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "NOT_FOUND"


async def test_zero_quantity_out_is_422(client, make_item):
    item = make_item(10)
    r = await client.post("/movements/", json={"item_id": str(item.id), "type": "OUT", "quantity": 0})
    assert r.status_code == 422
    assert r.json()["detail"]["field"] == "quantity"


async def test_unknown_type_is_rejected(client, make_item):
    item = make_item(10)
    r = await client.post("/movements/", json={"item_id": str(item.id), "type": "LOSS", "quantity": 1})
    assert r.status_code == 422


async def test_viewer_cannot_move_stock(app, store, make_item, user_factory):
    viewer = user_factory("auditor", UserRole.VIEWER)
    app.dependency_overrides[get_current_user] = lambda: viewer
    item = make_item(10)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        r = await c.post("/movements/", json={"item_id": str(item.id), "type": "IN", "quantity": 1})
        listing = await c.get("/movements/")

    assert r.status_code == 403
    assert listing.status_code == 200
    assert store.movements == []


async def test_storage_failure_is_503(make_item, operator):
    store = MemoryStore(fail_on={"commit"})
    item = store.add_item(make_item(10).model_copy())
    app = create_app(store=store)
    app.dependency_overrides[get_current_user] = lambda: operator

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        r = await c.post("/movements/", json={"item_id": str(item.id), "type": "IN", "quantity": 1})

    assert r.status_code == 503
    assert r.json()["detail"]["error"] == "STORAGE_ERROR"
    assert store.items[item.id].quantity == 10


async def test_adjust_endpoint(client, make_item):
    item = make_item(100)

    r = await client.post(f"/items/{item.id}/adjust", json={"quantity": 7, "reason": "Cycle count"})

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["type"] == "ADJUSTMENT"
    assert body["quantity_after"] == 7
    assert body["notes"] == "Inventory adjustment from 100 to 7"


async def test_adjust_requires_reason(client, make_item):
    item = make_item(100)
    r = await client.post(f"/items/{item.id}/adjust", json={"quantity": 7})
    assert r.status_code == 422


async def test_item_movements_paginated(client, make_item):
    item = make_item(0)
    for _ in range(3):
        await client.post("/movements/", json={"item_id": str(item.id), "type": "IN", "quantity": 2})

    r = await client.get(f"/items/{item.id}/movements", params={"limit": 2})

    assert r.status_code == 200
    body = r.json()
    assert len(body["movements"]) == 2
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["has_next"] is True

    assert (await client.get(f"/items/{uuid4()}/movements")).status_code == 404


async def test_reconcile_needs_a_manager(app, client, make_item, user_factory):
    item = make_item(10)
    await client.post("/movements/", json={"item_id": str(item.id), "type": "OUT", "quantity": 3})

    assert (await client.get(f"/items/{item.id}/reconcile")).status_code == 403

    manager = user_factory("boss", UserRole.MANAGER)
    app.dependency_overrides[get_current_user] = lambda: manager
    r = await client.get(f"/items/{item.id}/reconcile")
    assert r.status_code == 200
    assert r.json()["consistent"] is True
    assert r.json()["replayed_quantity"] == 7


async def test_queries(client, make_item):
    item = make_item(20)
    created = await client.post("/movements/", json={"item_id": str(item.id), "type": "OUT", "quantity": 5})
    await client.post("/movements/", json={"item_id": str(item.id), "type": "IN", "quantity": 1})

    one = await client.get(f"/movements/{created.json()['id']}")
    assert one.status_code == 200
    assert one.json()["quantity_after"] == 15

    assert (await client.get(f"/movements/{uuid4()}")).status_code == 404

    stats = (await client.get("/movements/stats", params={"item_id": str(item.id)})).json()
    assert (stats["total_in"], stats["total_out"]) == (1, 5)

    by_type = (await client.get("/movements/type/OUT")).json()
    assert by_type["pagination"]["total"] == 1

    recent = (await client.get("/movements/recent", params={"limit": 1})).json()
    assert len(recent) == 1
    assert recent[0]["type"] == "IN"


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2020-01-01T00:00:00Z", "2999-01-01T00:00:00Z", 200),
        ("2999-01-01T00:00:00Z", "2020-01-01T00:00:00Z", 422),
    ],
)
async def test_date_range(client, make_item, start, end, expected):
    item = make_item(5)
    await client.post("/movements/", json={"item_id": str(item.id), "type": "IN", "quantity": 1})

    r = await client.get("/movements/date-range", params={"start_date": start, "end_date": end})

    assert r.status_code == expected
    if expected == 200:
        assert r.json()["pagination"]["total"] == 1


async def test_reconcile_endpoint_reports_broken_history(app, client, store, make_item, user_factory):
    item = make_item(3)
    await client.post("/movements/", json={"item_id": str(item.id), "type": "OUT", "quantity": 3})
    store.items[item.id] = store.items[item.id].model_copy(update={"initial_quantity": 0})
    app.dependency_overrides[get_current_user] = lambda: user_factory("boss", UserRole.MANAGER)

    r = await client.get(f"/items/{item.id}/reconcile")

    assert r.status_code == 200
    assert r.json()["consistent"] is False
    assert r.json()["replayed_quantity"] is None


async def test_recent_limit_follows_max_page_size(client):
    assert (await client.get("/movements/recent", params={"limit": settings.MAX_PAGE_SIZE})).status_code == 200
    assert (await client.get("/movements/recent", params={"limit": settings.MAX_PAGE_SIZE + 1})).status_code == 422
