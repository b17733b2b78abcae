"""Inventory router for villa stock and its movement ledger."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.common import AuthorSummary, SuccessResponse
from ..schemas.inventory import (
    CreateInventoryItemRequest,
    CreateMovementRequest,
    InventoryItemResponse,
    MovementResponse,
    UpdateInventoryItemRequest,
)
from ..services.inventory_service import DEFAULT_MOVEMENT_LIMIT, InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _convert_item_to_schema(item_model) -> InventoryItemResponse:
    """Convert inventory item model to schema."""
    response = InventoryItemResponse.model_validate(item_model)
    response.is_low_stock = item_model.current_quantity <= item_model.minimum_quantity
    return response


def _convert_movement_to_schema(movement_model) -> MovementResponse:
    """Convert movement model to schema, flattening the item name and recording user."""
    return MovementResponse(
        id=movement_model.id,
        item_id=movement_model.item_id,
        item_name=movement_model.item.name if movement_model.item else None,
        type=movement_model.type,
        quantity=movement_model.quantity,
        reason=movement_model.reason,
        quantity_before=movement_model.quantity_before,
        quantity_after=movement_model.quantity_after,
        user_id=movement_model.user_id,
        user=AuthorSummary(full_name=movement_model.user.full_name) if movement_model.user else None,
        created_at=movement_model.created_at,
    )


@router.get("", response_model=List[InventoryItemResponse])
async def list_items(
    category: Optional[str] = Query(None),
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    items = await InventoryService(db).list_items(category=category)
    return JSONResponse(status_code=200, content=[_convert_item_to_schema(i).to_json() for i in items])


@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def list_low_stock(admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    items = await InventoryService(db).list_low_stock()
    return JSONResponse(status_code=200, content=[_convert_item_to_schema(i).to_json() for i in items])


@router.post("", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    request: CreateInventoryItemRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    item = await InventoryService(db).create_item(request)
    return JSONResponse(status_code=201, content=_convert_item_to_schema(item).to_json())


@router.post("/movements", response_model=MovementResponse, status_code=201)
async def record_movement(
    request: CreateMovementRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Record a stock movement.

    ``in`` adds to the item's quantity; ``out``, ``damaged`` and
    ``maintenance`` remove from it and are rejected with 409 when the
    stock is insufficient.
    """
    inventory_service = InventoryService(db)

    try:
        movement = await inventory_service.record_movement(request, admin)
        return JSONResponse(status_code=201, content=_convert_movement_to_schema(movement).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in inventory movement",
            extra={
                "item_id": request.item_id,
                "movement_type": request.type.value,
                "quantity": request.quantity,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/movements", response_model=List[MovementResponse])
async def list_movements(
    item_id: Optional[int] = Query(None, alias="itemId"),
    limit: int = Query(DEFAULT_MOVEMENT_LIMIT, ge=1, le=500),
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    movements = await InventoryService(db).list_movements(item_id=item_id, limit=limit)
    return JSONResponse(status_code=200, content=[_convert_movement_to_schema(m).to_json() for m in movements])


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_item(item_id: int, admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    item = await InventoryService(db).get_item_by_id_or_raise(item_id)
    return JSONResponse(status_code=200, content=_convert_item_to_schema(item).to_json())


@router.put("/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: int,
    request: UpdateInventoryItemRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    item = await InventoryService(db).update_item(item_id, request)
    return JSONResponse(status_code=200, content=_convert_item_to_schema(item).to_json())


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item(item_id: int, admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    await InventoryService(db).delete_item(item_id)
    return JSONResponse(status_code=200, content=SuccessResponse(success=True).to_json())
