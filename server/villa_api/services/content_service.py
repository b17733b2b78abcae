"""Blog and FAQ services."""

import logging
from typing import List, Optional

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.blog import BlogPost
from ..models.faq import Faq, FaqVote
from ..models.user import User
from ..schemas.content import CreateBlogPostRequest, CreateFaqRequest, UpdateBlogPostRequest, UpdateFaqRequest

logger = logging.getLogger(__name__)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user text matches literally (escape character is a backslash)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BlogService:
    """Service for blog post operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_post(self, author: User, request: CreateBlogPostRequest) -> BlogPost:
        """
        Create a blog post.

        Raises:
            ConflictError: If a post with the same slug already exists
        """
        existing = await self.get_post_by_slug(request.slug)
        if existing:
            logger.warning("Blog post creation failed - slug already exists", extra={"slug": request.slug})
            raise ConflictError(
                detail=f"Blog post with slug '{request.slug}' already exists",
                conflicting_resource={"id": existing.id, "slug": existing.slug},
            )

        post = BlogPost(author_id=author.id, **request.model_dump())
        try:
            self.db.add(post)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error("Blog post creation failed due to integrity constraint", extra={"slug": request.slug, "error": str(e)})
            raise ConflictError(detail=f"Blog post with slug '{request.slug}' already exists")

        logger.info("Blog post created", extra={"post_id": post.id, "slug": post.slug, "published": post.published})
        return await self.get_post_by_id_or_raise(post.id)

    async def get_post_by_id(self, post_id: int) -> Optional[BlogPost]:
        return await self.db.get(BlogPost, post_id, populate_existing=True)

    async def get_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        result = await self.db.execute(select(BlogPost).where(BlogPost.slug == slug))
        return result.scalar_one_or_none()

    async def get_post_by_id_or_raise(self, post_id: int) -> BlogPost:
        post = await self.get_post_by_id(post_id)
        if not post:
            logger.warning("Blog post not found", extra={"post_id": post_id})
            raise NotFoundError(resource_type="blog post", resource_id=post_id)
        return post

    async def list_posts(self, category: Optional[str] = None, include_drafts: bool = False) -> List[BlogPost]:
        stmt = select(BlogPost).order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
        if not include_drafts:
            stmt = stmt.where(BlogPost.published.is_(True))
        if category:
            stmt = stmt.where(BlogPost.category == category)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def view_post(self, slug: str, include_drafts: bool = False) -> BlogPost:
        """
        Fetch a post by slug and count the view.

        Raises:
            NotFoundError: If the post is missing, or unpublished and drafts are not visible
        """
        post = await self.get_post_by_slug(slug)
        if post is None or (not post.published and not include_drafts):
            raise NotFoundError(resource_type="blog post", detail=f"Blog post '{slug}' could not be found")

        await self.db.execute(
            update(BlogPost).where(BlogPost.id == post.id).values(view_count=BlogPost.view_count + 1)
        )
        await self.db.commit()
        return await self.get_post_by_id_or_raise(post.id)

    async def update_post(self, post_id: int, request: UpdateBlogPostRequest) -> BlogPost:
        post = await self.get_post_by_id_or_raise(post_id)
        changes = request.model_dump(exclude_unset=True)

        new_slug = changes.get("slug")
        if new_slug and new_slug != post.slug and await self.get_post_by_slug(new_slug):
            raise ConflictError(detail=f"Blog post with slug '{new_slug}' already exists")

        for field, value in changes.items():
            setattr(post, field, value)
        await self.db.commit()

        logger.info("Blog post updated", extra={"post_id": post_id, "fields": sorted(changes)})
        return await self.get_post_by_id_or_raise(post_id)

    async def delete_post(self, post_id: int) -> None:
        post = await self.get_post_by_id_or_raise(post_id)
        await self.db.delete(post)
        await self.db.commit()
        logger.info("Blog post deleted", extra={"post_id": post_id})


class FaqService:
    """Service for FAQ entries, views and helpfulness votes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_faq(self, request: CreateFaqRequest) -> Faq:
        faq = Faq(**request.model_dump())
        self.db.add(faq)
        await self.db.commit()
        await self.db.refresh(faq)
        logger.info("FAQ created", extra={"faq_id": faq.id, "category": faq.category})
        return faq

    async def get_faq_by_id(self, faq_id: int) -> Optional[Faq]:
        return await self.db.get(Faq, faq_id, populate_existing=True)

    async def get_faq_by_id_or_raise(self, faq_id: int) -> Faq:
        """
        Get FAQ by ID or raise NotFoundError.

        Raises:
            NotFoundError: If the FAQ does not exist
        """
        faq = await self.get_faq_by_id(faq_id)
        if not faq:
            logger.warning("FAQ not found", extra={"faq_id": faq_id})
            raise NotFoundError(resource_type="faq", resource_id=faq_id)
        return faq

    async def get_visible_faq(self, faq_id: int, include_inactive: bool = False) -> Faq:
        """
        Get a FAQ as the public sees it.

        Raises:
            NotFoundError: If the FAQ is missing, or inactive and inactive entries are not visible
        """
        faq = await self.get_faq_by_id_or_raise(faq_id)
        if not faq.is_active and not include_inactive:
            raise NotFoundError(resource_type="faq", resource_id=faq_id)
        return faq

    async def list_faqs(self, category: Optional[str] = None, include_inactive: bool = False) -> List[Faq]:
        stmt = select(Faq).order_by(Faq.category, Faq.id)
        if not include_inactive:
            stmt = stmt.where(Faq.is_active.is_(True))
        if category:
            stmt = stmt.where(Faq.category == category)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def search_faqs(self, query: str) -> List[Faq]:
        """Case-insensitive substring search over active FAQs; blank queries match nothing."""
        term = query.strip().lower()
        if not term:
            return []
        pattern = f"%{escape_like(term)}%"
        stmt = (
            select(Faq)
            .where(
                Faq.is_active.is_(True),
                or_(
                    func.lower(Faq.question).like(pattern, escape="\\"),
                    func.lower(Faq.answer).like(pattern, escape="\\"),
                    func.lower(Faq.category).like(pattern, escape="\\"),
                ),
            )
            .order_by(Faq.category, Faq.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_faq(self, faq_id: int, request: UpdateFaqRequest) -> Faq:
        faq = await self.get_faq_by_id_or_raise(faq_id)
        changes = request.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(faq, field, value)
        await self.db.commit()
        await self.db.refresh(faq)
        logger.info("FAQ updated", extra={"faq_id": faq_id, "fields": sorted(changes)})
        return faq

    async def delete_faq(self, faq_id: int) -> None:
        faq = await self.get_faq_by_id_or_raise(faq_id)
        await self.db.execute(delete(FaqVote).where(FaqVote.faq_id == faq_id))
        await self.db.delete(faq)
        await self.db.commit()
        logger.info("FAQ deleted", extra={"faq_id": faq_id})

    async def record_view(self, faq_id: int) -> Faq:
        """Increment the view counter in a single UPDATE."""
        result = await self.db.execute(
            update(Faq).where(Faq.id == faq_id).values(view_count=Faq.view_count + 1)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError(resource_type="faq", resource_id=faq_id)
        await self.db.commit()
        return await self.get_faq_by_id_or_raise(faq_id)

    async def vote(self, faq_id: int, user: User, is_helpful: bool) -> Faq:
        """
        Record a user's vote and recompute the FAQ's counters.

        A user has one vote per FAQ; voting again replaces the earlier vote.
        Both counters are recomputed from all vote rows for the FAQ.

        Args:
            faq_id: FAQ being voted on
            user: Voter
            is_helpful: True for helpful, False for not helpful

        Returns:
            The FAQ with updated counters

        Raises:
            NotFoundError: If the FAQ does not exist
        """
        await self.get_faq_by_id_or_raise(faq_id)

        result = await self.db.execute(
            select(FaqVote).where(FaqVote.faq_id == faq_id, FaqVote.user_id == user.id)
        )
        existing_vote = result.scalar_one_or_none()
        if existing_vote is None:
            self.db.add(FaqVote(faq_id=faq_id, user_id=user.id, is_helpful=is_helpful))
        else:
            existing_vote.is_helpful = is_helpful
        await self.db.flush()

        helpful, not_helpful = await self._count_votes(faq_id)
        await self.db.execute(
            update(Faq)
            .where(Faq.id == faq_id)
            .values(helpful_votes=helpful, not_helpful_votes=not_helpful)
        )
        await self.db.commit()

        logger.info(
            "FAQ vote recorded",
            extra={
                "faq_id": faq_id,
                "user_id": user.id,
                "is_helpful": is_helpful,
                "helpful_votes": helpful,
                "not_helpful_votes": not_helpful,
            }
        )
        return await self.get_faq_by_id_or_raise(faq_id)

    async def _count_votes(self, faq_id: int) -> tuple[int, int]:
        stmt = select(
            func.coalesce(func.sum(case((FaqVote.is_helpful.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(case((FaqVote.is_helpful.is_(False), 1), else_=0)), 0),
        ).where(FaqVote.faq_id == faq_id)
        result = await self.db.execute(stmt)
        helpful, not_helpful = result.one()
        return int(helpful), int(not_helpful)
