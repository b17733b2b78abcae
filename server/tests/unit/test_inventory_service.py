"""Unit tests for inventory service."""

import pytest

from villa_api.core.exceptions import InsufficientQuantityError, NotFoundError
from villa_api.models.user import User
from villa_api.schemas.inventory import (
    CreateInventoryItemRequest,
    CreateMovementRequest,
    UpdateInventoryItemRequest,
)
from villa_api.services.inventory_service import InventoryService


async def _create_item(service: InventoryService, **overrides):
    data = {"name": "Lenzuola", "category": "biancheria", "currentQuantity": 10, "minimumQuantity": 4}
    data.update(overrides)
    return await service.create_item(CreateInventoryItemRequest(**data))


@pytest.mark.asyncio
async def test_create_item(test_session):
    item = await _create_item(InventoryService(test_session))

    assert item.id is not None
    assert item.current_quantity == 10
    assert item.minimum_quantity == 4
    assert item.unit == "pz"


@pytest.mark.asyncio
async def test_movement_in_adds_stock(test_session, admin_user):
    """Test an ``in`` movement increases the quantity and records before/after."""
    service = InventoryService(test_session)
    item = await _create_item(service)

    movement = await service.record_movement(
        CreateMovementRequest(itemId=item.id, type="in", quantity=5, reason="Acquisto"),
        admin_user,
    )

    assert movement.quantity_before == 10
    assert movement.quantity_after == 15
    assert movement.user_id == admin_user.id
    assert (await service.get_item_by_id(item.id)).current_quantity == 15


@pytest.mark.asyncio
@pytest.mark.parametrize("movement_type", ["out", "damaged", "maintenance"])
async def test_removal_movements_reduce_stock(test_session, admin_user, movement_type):
    service = InventoryService(test_session)
    item = await _create_item(service)

    movement = await service.record_movement(
        CreateMovementRequest(itemId=item.id, type=movement_type, quantity=3),
        admin_user,
    )

    assert movement.quantity_before == 10
    assert movement.quantity_after == 7
    assert (await service.get_item_by_id(item.id)).current_quantity == 7


@pytest.mark.asyncio
async def test_removal_beyond_stock_rejected(test_session, admin_user):
    """Test a removal larger than the stock fails and changes nothing."""
    admin_id = admin_user.id
    service = InventoryService(test_session)
    item = await _create_item(service, currentQuantity=2)
    item_id = item.id

    with pytest.raises(InsufficientQuantityError) as exc_info:
        await service.record_movement(CreateMovementRequest(itemId=item_id, type="out", quantity=3), admin_user)

    assert exc_info.value.problem_details["available_quantity"] == 2
    assert (await service.get_item_by_id(item_id)).current_quantity == 2
    assert await service.list_movements(item_id=item_id) == []

    # Taking exactly the remaining stock is allowed
    movement = await service.record_movement(
        CreateMovementRequest(itemId=item_id, type="out", quantity=2),
        await test_session.get(User, admin_id),
    )
    assert movement.quantity_after == 0


@pytest.mark.asyncio
async def test_movement_for_missing_item(test_session, admin_user):
    with pytest.raises(NotFoundError):
        await InventoryService(test_session).record_movement(
            CreateMovementRequest(itemId=404, type="in", quantity=1),
            admin_user,
        )


@pytest.mark.asyncio
async def test_low_stock(test_session):
    """Test items at or below their minimum are reported as low stock."""
    service = InventoryService(test_session)
    await _create_item(service, name="Sapone", currentQuantity=3, minimumQuantity=5)
    await _create_item(service, name="Cuscini", currentQuantity=5, minimumQuantity=5)
    await _create_item(service, name="Piatti", currentQuantity=30, minimumQuantity=12)

    low = await service.list_low_stock()

    assert sorted(i.name for i in low) == ["Cuscini", "Sapone"]
    assert await service.count_low_stock() == 2


@pytest.mark.asyncio
async def test_update_item_keeps_quantity(test_session):
    service = InventoryService(test_session)
    item = await _create_item(service)

    updated = await service.update_item(item.id, UpdateInventoryItemRequest(minStock=8, location="Armadio"))

    assert updated.minimum_quantity == 8
    assert updated.location == "Armadio"
    assert updated.current_quantity == 10


@pytest.mark.asyncio
async def test_delete_item_removes_movements(test_session, admin_user):
    service = InventoryService(test_session)
    item = await _create_item(service)
    await service.record_movement(CreateMovementRequest(itemId=item.id, type="in", quantity=1), admin_user)

    await service.delete_item(item.id)

    assert await service.get_item_by_id(item.id) is None
    assert await service.list_movements(item_id=item.id) == []


@pytest.mark.asyncio
async def test_list_movements_newest_first(test_session, admin_user):
    service = InventoryService(test_session)
    item = await _create_item(service)
    first = await service.record_movement(CreateMovementRequest(itemId=item.id, type="in", quantity=1), admin_user)
    second = await service.record_movement(CreateMovementRequest(itemId=item.id, type="out", quantity=2), admin_user)

    movements = await service.list_movements(item_id=item.id)

    assert [m.id for m in movements] == [second.id, first.id]
    assert len(await service.list_movements(limit=1)) == 1
