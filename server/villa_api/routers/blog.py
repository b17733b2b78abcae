"""Blog router."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY, OptionalUser
from ..core.exceptions import ProblemDetailsException
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.content import BlogPostResponse, CreateBlogPostRequest, UpdateBlogPostRequest
from ..services.content_service import BlogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog", tags=["blog"])


def _convert_post_to_schema(post_model) -> BlogPostResponse:
    return BlogPostResponse.model_validate(post_model)


def _is_admin(user: Optional[User]) -> bool:
    return user is not None and user.is_admin


@router.get("", response_model=List[BlogPostResponse])
async def list_posts(
    category: Optional[str] = Query(None),
    user: Optional[User] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Published posts, newest first. Administrators also see drafts."""
    posts = await BlogService(db).list_posts(category=category, include_drafts=_is_admin(user))
    return JSONResponse(status_code=200, content=[_convert_post_to_schema(p).to_json() for p in posts])


@router.get("/{slug}", response_model=BlogPostResponse)
async def get_post(
    slug: str,
    user: Optional[User] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    post = await BlogService(db).view_post(slug, include_drafts=_is_admin(user))
    return JSONResponse(status_code=200, content=_convert_post_to_schema(post).to_json())


@router.post("", response_model=BlogPostResponse, status_code=201)
async def create_post(
    request: CreateBlogPostRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Create a post authored by the calling administrator."""
    try:
        post = await BlogService(db).create_post(admin, request)
        return JSONResponse(status_code=201, content=_convert_post_to_schema(post).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in blog post creation",
            extra={"slug": request.slug, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("/{post_id}", response_model=BlogPostResponse)
async def update_post(
    post_id: int,
    request: UpdateBlogPostRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    post = await BlogService(db).update_post(post_id, request)
    return JSONResponse(status_code=200, content=_convert_post_to_schema(post).to_json())


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await BlogService(db).delete_post(post_id)
    return JSONResponse(status_code=200, content=SuccessResponse(success=True).to_json())
