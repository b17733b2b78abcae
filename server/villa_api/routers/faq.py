"""FAQ router."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY, OptionalUser
from ..core.exceptions import AuthenticationError
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.content import CreateFaqRequest, FaqResponse, FaqVoteRequest, UpdateFaqRequest
from ..services.content_service import FaqService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/faqs", tags=["faq"])


def _to_json(faq) -> dict:
    return FaqResponse.model_validate(faq).to_json()


@router.get("", response_model=List[FaqResponse])
async def list_faqs(
    category: Optional[str] = Query(None),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    faqs = await FaqService(db).list_faqs(category=category)
    return JSONResponse(status_code=200, content=[_to_json(f) for f in faqs])


@router.get("/search", response_model=List[FaqResponse])
async def search_faqs(
    q: str = Query("", description="Text to look for in questions, answers and categories"),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    faqs = await FaqService(db).search_faqs(q)
    return JSONResponse(status_code=200, content=[_to_json(f) for f in faqs])


@router.get("/{faq_id}", response_model=FaqResponse)
async def get_faq(
    faq_id: int,
    user: Optional[User] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    faq = await FaqService(db).get_visible_faq(faq_id, include_inactive=user is not None and user.is_admin)
    return JSONResponse(status_code=200, content=_to_json(faq))


@router.post("", response_model=FaqResponse, status_code=201)
async def create_faq(
    request: CreateFaqRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    faq = await FaqService(db).create_faq(request)
    return JSONResponse(status_code=201, content=_to_json(faq))


@router.put("/{faq_id}", response_model=FaqResponse)
async def update_faq(
    faq_id: int,
    request: UpdateFaqRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    faq = await FaqService(db).update_faq(faq_id, request)
    return JSONResponse(status_code=200, content=_to_json(faq))


@router.delete("/{faq_id}", response_model=SuccessResponse)
async def delete_faq(
    faq_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await FaqService(db).delete_faq(faq_id)
    return JSONResponse(status_code=200, content=SuccessResponse(success=True).to_json())


@router.post("/{faq_id}/view", response_model=FaqResponse)
async def record_view(faq_id: int, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    faq = await FaqService(db).record_view(faq_id)
    return JSONResponse(status_code=200, content=_to_json(faq))


@router.post("/{faq_id}/vote", response_model=FaqResponse)
async def vote(
    faq_id: int,
    request: FaqVoteRequest,
    user: Optional[User] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Record whether the caller found the answer helpful.

    Each user holds one vote per FAQ; voting again changes it.
    """
    if user is None:
        raise AuthenticationError(detail="Authentication required")

    faq = await FaqService(db).vote(faq_id, user, request.is_helpful)
    return JSONResponse(status_code=200, content=_to_json(faq))
