"""Promotions router: public offers and their administration."""

import logging
from typing import List

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY
from ..core.exceptions import NotFoundError
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.marketing import CreatePromotionRequest, PromotionResponse, UpdatePromotionRequest
from ..services.promotion_service import PromotionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["promotions"])


def _to_json(promotion) -> dict:
    return PromotionResponse.model_validate(promotion).to_json()


@router.get("/promotions", response_model=List[PromotionResponse])
async def list_current_promotions(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Active promotions running today."""
    promotions = await PromotionService(db).list_current()
    return JSONResponse(status_code=200, content=[_to_json(p) for p in promotions])


@router.get("/promotions/{code}", response_model=PromotionResponse)
async def get_promotion(code: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    promotion = await PromotionService(db).get_promotion_by_code(code)
    if promotion is None:
        raise NotFoundError(resource_type="promotion", detail=f"Promotion '{code.upper()}' is not available")
    return JSONResponse(status_code=200, content=_to_json(promotion))


@router.get("/admin/promotions", response_model=List[PromotionResponse])
async def list_all_promotions(admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    promotions = await PromotionService(db).list_all()
    return JSONResponse(status_code=200, content=[_to_json(p) for p in promotions])


@router.post("/admin/promotions", response_model=PromotionResponse, status_code=201)
async def create_promotion(
    request: CreatePromotionRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    promotion = await PromotionService(db).create_promotion(request)
    return JSONResponse(status_code=201, content=_to_json(promotion))


@router.put("/admin/promotions/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: int,
    request: UpdatePromotionRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    promotion = await PromotionService(db).update_promotion(promotion_id, request)
    return JSONResponse(status_code=200, content=_to_json(promotion))


@router.delete("/admin/promotions/{promotion_id}", response_model=SuccessResponse)
async def delete_promotion(
    promotion_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await PromotionService(db).delete_promotion(promotion_id)
    return JSONResponse(status_code=200, content=SuccessResponse(success=True).to_json())
