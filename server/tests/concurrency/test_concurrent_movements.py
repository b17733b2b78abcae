"""Concurrency tests for inventory stock movements."""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from villa_api.core.database import Base
from villa_api.core.exceptions import InsufficientQuantityError
from villa_api.models.inventory import MovementType
from villa_api.schemas.inventory import CreateInventoryItemRequest, CreateMovementRequest
from villa_api.services.inventory_service import InventoryService


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path):
    """Sessions on separate connections to a file database, like separate requests."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'villa.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


async def _create_item(factory, quantity: int) -> int:
    async with factory() as session:
        item = await InventoryService(session).create_item(
            CreateInventoryItemRequest(name="Lenzuola", currentQuantity=quantity, minimumQuantity=2)
        )
        return item.id


async def _remove(factory, item_id: int, quantity: int):
    async with factory() as session:
        try:
            return await InventoryService(session).record_movement(
                CreateMovementRequest(item_id=item_id, type=MovementType.OUT, quantity=quantity),
                None,
            )
        except InsufficientQuantityError:
            return None


@pytest.mark.asyncio
async def test_concurrent_removals_never_overdraw(file_session_factory):
    """Test concurrent removals succeed only while stock lasts."""
    item_id = await _create_item(file_session_factory, 5)

    results = await asyncio.gather(*[_remove(file_session_factory, item_id, 1) for _ in range(12)])

    successful = [r for r in results if r is not None]
    assert len(successful) == 5

    async with file_session_factory() as session:
        service = InventoryService(session)
        item = await service.get_item_by_id_or_raise(item_id)
        movements = await service.list_movements(item_id=item_id)

    assert item.current_quantity == 0
    assert len(movements) == 5
    assert sorted(m.quantity_after for m in movements) == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_concurrent_mixed_movements_balance(file_session_factory):
    """Test the final stock equals the opening stock plus every accepted movement."""
    item_id = await _create_item(file_session_factory, 3)

    async def add(quantity: int):
        async with file_session_factory() as session:
            return await InventoryService(session).record_movement(
                CreateMovementRequest(item_id=item_id, type=MovementType.IN, quantity=quantity),
                None,
            )

    results = await asyncio.gather(
        *[add(2) for _ in range(5)],
        *[_remove(file_session_factory, item_id, 3) for _ in range(5)],
    )

    removed = sum(3 for r in results[5:] if r is not None)

    async with file_session_factory() as session:
        item = await InventoryService(session).get_item_by_id_or_raise(item_id)

    assert item.current_quantity == 3 + 10 - removed
    assert item.current_quantity >= 0
