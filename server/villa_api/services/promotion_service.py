"""Promotion service."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.timeutils import utcnow
from ..models.marketing import Promotion
from ..schemas.marketing import CreatePromotionRequest, UpdatePromotionRequest

logger = logging.getLogger(__name__)


def _check_window(valid_from: datetime, valid_to: datetime) -> None:
    if valid_to < valid_from:
        raise ValidationError(
            detail="validTo must not be before validFrom",
            violations=[{"path": "validTo", "message": "must not be before validFrom"}],
        )


class PromotionService:
    """Service for discount promotions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_promotion(self, request: CreatePromotionRequest) -> Promotion:
        """
        Create a promotion.

        Raises:
            ValidationError: If the validity window ends before it starts
            ConflictError: If the code is already in use
        """
        _check_window(request.valid_from, request.valid_to)

        if await self.get_promotion_by_code(request.code, only_current=False):
            raise ConflictError(detail=f"Promotion code '{request.code}' already exists")

        promotion = Promotion(**request.model_dump())
        try:
            self.db.add(promotion)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(detail=f"Promotion code '{request.code}' already exists")
        await self.db.refresh(promotion)

        logger.info(
            "Promotion created",
            extra={"promotion_id": promotion.id, "code": promotion.code, "discount_percent": promotion.discount_percent}
        )
        return promotion

    async def get_promotion_or_raise(self, promotion_id: int) -> Promotion:
        promotion = await self.db.get(Promotion, promotion_id, populate_existing=True)
        if not promotion:
            raise NotFoundError(resource_type="promotion", resource_id=promotion_id)
        return promotion

    async def get_promotion_by_code(self, code: str, only_current: bool = True) -> Optional[Promotion]:
        """Look up a promotion by code, case-insensitively; by default only if currently running."""
        stmt = select(Promotion).where(func.upper(Promotion.code) == code.upper())
        if only_current:
            now = utcnow()
            stmt = stmt.where(
                Promotion.is_active.is_(True),
                Promotion.valid_from <= now,
                Promotion.valid_to >= now,
            )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_current(self) -> List[Promotion]:
        now = utcnow()
        stmt = (
            select(Promotion)
            .where(
                Promotion.is_active.is_(True),
                Promotion.valid_from <= now,
                Promotion.valid_to >= now,
            )
            .order_by(Promotion.valid_to, Promotion.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[Promotion]:
        result = await self.db.execute(select(Promotion).order_by(Promotion.created_at.desc(), Promotion.id.desc()))
        return list(result.scalars().all())

    async def update_promotion(self, promotion_id: int, request: UpdatePromotionRequest) -> Promotion:
        promotion = await self.get_promotion_or_raise(promotion_id)
        changes = request.model_dump(exclude_unset=True)
        _check_window(
            changes.get("valid_from") or promotion.valid_from,
            changes.get("valid_to") or promotion.valid_to,
        )
        for field, value in changes.items():
            setattr(promotion, field, value)
        await self.db.commit()
        await self.db.refresh(promotion)
        logger.info("Promotion updated", extra={"promotion_id": promotion_id, "fields": sorted(changes)})
        return promotion

    async def delete_promotion(self, promotion_id: int) -> None:
        promotion = await self.get_promotion_or_raise(promotion_id)
        await self.db.delete(promotion)
        await self.db.commit()
        logger.info("Promotion deleted", extra={"promotion_id": promotion_id})
