"""Blog and FAQ schemas."""

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator

from ..core.timeutils import UtcDateTime
from .common import ApiModel, AuthorSummary, reject_null

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CreateBlogPostRequest(ApiModel):
    """Request schema for creating a blog post."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN, description="URL-friendly identifier")
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    published: bool = False


class UpdateBlogPostRequest(ApiModel):
    """Partial update of a blog post."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    published: Optional[bool] = None

    @field_validator("title", "slug", "content", "tags", "published")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)


class BlogPostResponse(ApiModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    published: bool
    view_count: int
    author_id: Optional[int] = None
    author: Optional[AuthorSummary] = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class CreateFaqRequest(ApiModel):
    """Request schema for creating a FAQ entry."""

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: str = Field("general", min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = Field(True, validation_alias=AliasChoices("isActive", "published", "is_active"))


class UpdateFaqRequest(ApiModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = Field(None, validation_alias=AliasChoices("isActive", "published", "is_active"))

    @field_validator("question", "answer", "category", "tags", "is_active")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)


class FaqVoteRequest(ApiModel):
    is_helpful: bool = Field(..., description="True for helpful, False for not helpful")


class FaqResponse(ApiModel):
    """FAQ entry with its view and vote counters."""

    id: int
    question: str
    answer: str
    category: str
    tags: List[str] = Field(default_factory=list)
    view_count: int
    helpful_votes: int
    not_helpful_votes: int
    is_active: bool
    created_at: UtcDateTime
    updated_at: UtcDateTime
