"""API tests for the inventory endpoints."""

import pytest


async def _create_item(test_client, admin_headers, data):
    response = await test_client.post("/api/inventory", json=data, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _move(test_client, admin_headers, item_id, movement_type, quantity, reason=None):
    return await test_client.post(
        "/api/inventory/movements",
        json={"itemId": item_id, "type": movement_type, "quantity": quantity, "reason": reason},
        headers=admin_headers,
    )


@pytest.mark.asyncio
async def test_inventory_requires_admin(test_client, guest_headers):
    assert (await test_client.get("/api/inventory", headers=guest_headers)).status_code == 403
    assert (await test_client.get("/api/inventory")).status_code == 401


@pytest.mark.asyncio
async def test_create_item(test_client, admin_headers, sample_item_data):
    item = await _create_item(test_client, admin_headers, sample_item_data)

    assert item["name"] == "Asciugamani"
    assert item["currentQuantity"] == 20
    assert item["minimumQuantity"] == 5
    assert item["isLowStock"] is False


@pytest.mark.asyncio
async def test_movements_update_stock(test_client, admin_headers, sample_item_data):
    """Test removals and additions change the quantity and are recorded with before/after values."""
    item = await _create_item(test_client, admin_headers, sample_item_data)

    out = await _move(test_client, admin_headers, item["id"], "out", 16, "Cambio settimanale")
    assert out.status_code == 201
    movement = out.json()
    assert movement["quantityBefore"] == 20
    assert movement["quantityAfter"] == 4
    assert movement["itemName"] == "Asciugamani"
    assert movement["user"]["fullName"] == "Giulia Bianchi"

    fetched = await test_client.get(f"/api/inventory/{item['id']}", headers=admin_headers)
    assert fetched.json()["currentQuantity"] == 4
    assert fetched.json()["isLowStock"] is True

    low = await test_client.get("/api/inventory/low-stock", headers=admin_headers)
    assert [i["id"] for i in low.json()] == [item["id"]]

    back = await _move(test_client, admin_headers, item["id"], "in", 10)
    assert back.json()["quantityAfter"] == 14


@pytest.mark.asyncio
async def test_insufficient_stock(test_client, admin_headers, sample_item_data):
    item = await _create_item(test_client, admin_headers, {**sample_item_data, "currentQuantity": 3})

    response = await _move(test_client, admin_headers, item["id"], "damaged", 5)

    assert response.status_code == 409
    data = response.json()
    assert data["available_quantity"] == 3
    assert data["requested_quantity"] == 5

    fetched = await test_client.get(f"/api/inventory/{item['id']}", headers=admin_headers)
    assert fetched.json()["currentQuantity"] == 3

    movements = await test_client.get(f"/api/inventory/movements?itemId={item['id']}", headers=admin_headers)
    assert movements.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -2])
async def test_movement_quantity_must_be_positive(test_client, admin_headers, sample_item_data, quantity):
    item = await _create_item(test_client, admin_headers, sample_item_data)

    response = await _move(test_client, admin_headers, item["id"], "in", quantity)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_movement_unknown_item(test_client, admin_headers):
    response = await _move(test_client, admin_headers, 999, "in", 1)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_movements(test_client, admin_headers, sample_item_data):
    towels = await _create_item(test_client, admin_headers, sample_item_data)
    soap = await _create_item(test_client, admin_headers, {**sample_item_data, "name": "Sapone"})
    await _move(test_client, admin_headers, towels["id"], "out", 2)
    await _move(test_client, admin_headers, soap["id"], "out", 1)
    await _move(test_client, admin_headers, towels["id"], "maintenance", 1)

    everything = await test_client.get("/api/inventory/movements", headers=admin_headers)
    towels_only = await test_client.get(f"/api/inventory/movements?itemId={towels['id']}", headers=admin_headers)
    latest = await test_client.get("/api/inventory/movements?limit=1", headers=admin_headers)

    assert len(everything.json()) == 3
    assert [m["type"] for m in towels_only.json()] == ["maintenance", "out"]
    assert latest.json()[0]["type"] == "maintenance"


@pytest.mark.asyncio
async def test_update_and_delete_item(test_client, admin_headers, sample_item_data):
    item = await _create_item(test_client, admin_headers, sample_item_data)
    await _move(test_client, admin_headers, item["id"], "out", 5)

    updated = await test_client.put(
        f"/api/inventory/{item['id']}",
        json={"minimumQuantity": 15, "location": "Ripostiglio"},
        headers=admin_headers,
    )
    assert updated.json()["currentQuantity"] == 15
    assert updated.json()["isLowStock"] is True

    deleted = await test_client.delete(f"/api/inventory/{item['id']}", headers=admin_headers)
    assert deleted.json()["success"] is True
    assert (await test_client.get(f"/api/inventory/{item['id']}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"name": None}, {"category": None}, {"unit": None}, {"minimumQuantity": None}])
async def test_update_item_rejects_null(test_client, admin_headers, sample_item_data, payload):
    item = await _create_item(test_client, admin_headers, sample_item_data)

    response = await test_client.put(f"/api/inventory/{item['id']}", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["violations"]
    current = await test_client.get(f"/api/inventory/{item['id']}", headers=admin_headers)
    assert current.json()["name"] == "Asciugamani"
    assert current.json()["minimumQuantity"] == 5
