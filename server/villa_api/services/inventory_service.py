"""Inventory service for stock items and their movement ledger."""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InsufficientQuantityError, NotFoundError
from ..core.observability import metrics_collector
from ..models.inventory import InventoryItem, InventoryMovement, MovementType, signed_delta
from ..models.user import User
from ..schemas.inventory import CreateInventoryItemRequest, CreateMovementRequest, UpdateInventoryItemRequest

logger = logging.getLogger(__name__)

DEFAULT_MOVEMENT_LIMIT = 50


class InventoryService:
    """Service for inventory items and stock movements."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_item(self, request: CreateInventoryItemRequest) -> InventoryItem:
        item = InventoryItem(**request.model_dump())
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        logger.info(
            "Inventory item created",
            extra={"item_id": item.id, "item_name": item.name, "current_quantity": item.current_quantity}
        )
        return item

    async def get_item_by_id(self, item_id: int) -> Optional[InventoryItem]:
        return await self.db.get(InventoryItem, item_id, populate_existing=True)

    async def get_item_by_id_or_raise(self, item_id: int) -> InventoryItem:
        """
        Get inventory item by ID or raise NotFoundError.

        Raises:
            NotFoundError: If the item does not exist
        """
        item = await self.get_item_by_id(item_id)
        if not item:
            logger.warning("Inventory item not found", extra={"item_id": item_id})
            raise NotFoundError(resource_type="inventory item", resource_id=item_id)
        return item

    async def list_items(self, category: Optional[str] = None) -> List[InventoryItem]:
        stmt = select(InventoryItem).order_by(InventoryItem.category, InventoryItem.name)
        if category:
            stmt = stmt.where(InventoryItem.category == category)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_low_stock(self) -> List[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.current_quantity <= InventoryItem.minimum_quantity)
            .order_by(InventoryItem.category, InventoryItem.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_low_stock(self) -> int:
        result = await self.db.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.current_quantity <= InventoryItem.minimum_quantity
            )
        )
        return result.scalar_one()

    async def update_item(self, item_id: int, request: UpdateInventoryItemRequest) -> InventoryItem:
        item = await self.get_item_by_id_or_raise(item_id)
        changes = request.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(item, field, value)
        await self.db.commit()
        await self.db.refresh(item)
        logger.info("Inventory item updated", extra={"item_id": item_id, "fields": sorted(changes)})
        return item

    async def delete_item(self, item_id: int) -> None:
        item = await self.get_item_by_id_or_raise(item_id)
        await self.db.execute(delete(InventoryMovement).where(InventoryMovement.item_id == item_id))
        await self.db.delete(item)
        await self.db.commit()
        logger.info("Inventory item deleted", extra={"item_id": item_id})

    async def record_movement(self, request: CreateMovementRequest, user: Optional[User]) -> InventoryMovement:
        """
        Apply a stock movement and append it to the ledger.

        The quantity change is a single conditional UPDATE, so concurrent
        removals can never take the stock below zero. The ledger row and the
        quantity change commit together.

        Args:
            request: Movement details
            user: Administrator recording the movement

        Returns:
            Created movement with before/after quantities

        Raises:
            NotFoundError: If the item does not exist
            InsufficientQuantityError: If a removal exceeds the current stock
        """
        movement_type = MovementType(request.type)
        delta = signed_delta(movement_type, request.quantity)

        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == request.item_id)
            .values(current_quantity=InventoryItem.current_quantity + delta)
        )
        if delta < 0:
            stmt = stmt.where(InventoryItem.current_quantity >= request.quantity)

        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            await self.db.rollback()
            item = await self.get_item_by_id_or_raise(request.item_id)
            logger.warning(
                "Inventory movement rejected - insufficient stock",
                extra={
                    "item_id": item.id,
                    "movement_type": movement_type.value,
                    "requested_quantity": request.quantity,
                    "available_quantity": item.current_quantity,
                }
            )
            raise InsufficientQuantityError(
                requested_quantity=request.quantity,
                available_quantity=item.current_quantity,
                item_id=item.id,
            )

        quantity_after = (
            await self.db.execute(
                select(InventoryItem.current_quantity).where(InventoryItem.id == request.item_id)
            )
        ).scalar_one()

        movement = InventoryMovement(
            item_id=request.item_id,
            user_id=user.id if user else None,
            type=movement_type.value,
            quantity=request.quantity,
            reason=request.reason,
            quantity_before=quantity_after - delta,
            quantity_after=quantity_after,
        )
        self.db.add(movement)
        await self.db.commit()

        metrics_collector.record_inventory_movement(movement_type.value)
        logger.info(
            "Inventory movement recorded",
            extra={
                "movement_id": movement.id,
                "item_id": request.item_id,
                "movement_type": movement_type.value,
                "quantity": request.quantity,
                "quantity_before": movement.quantity_before,
                "quantity_after": quantity_after,
            }
        )
        return await self.get_movement_by_id_or_raise(movement.id)

    async def get_movement_by_id_or_raise(self, movement_id: int) -> InventoryMovement:
        movement = await self.db.get(InventoryMovement, movement_id, populate_existing=True)
        if not movement:
            raise NotFoundError(resource_type="inventory movement", resource_id=movement_id)
        return movement

    async def list_movements(
        self,
        item_id: Optional[int] = None,
        limit: int = DEFAULT_MOVEMENT_LIMIT,
    ) -> List[InventoryMovement]:
        """Most recent movements first, optionally for a single item."""
        stmt = (
            select(InventoryMovement)
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
            .limit(limit)
        )
        if item_id is not None:
            stmt = stmt.where(InventoryMovement.item_id == item_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
