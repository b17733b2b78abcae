"""Promotion, dashboard statistics and distance schemas."""

from typing import Optional

from pydantic import Field, field_validator

from ..core.timeutils import UtcDateTime
from .common import ApiModel, DateInput, reject_null


class CreatePromotionRequest(ApiModel):
    """Request schema for creating a promotion."""

    code: str = Field(..., min_length=2, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_percent: int = Field(..., ge=1, le=100)
    valid_from: DateInput
    valid_to: DateInput
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalise_code(cls, v: str) -> str:
        return v.upper()


class UpdatePromotionRequest(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    discount_percent: Optional[int] = Field(None, ge=1, le=100)
    valid_from: Optional[DateInput] = None
    valid_to: Optional[DateInput] = None
    is_active: Optional[bool] = None

    @field_validator("title", "discount_percent", "valid_from", "valid_to", "is_active")
    @classmethod
    def required_columns_not_null(cls, v):
        return reject_null(v)


class PromotionResponse(ApiModel):
    id: int
    code: str
    title: str
    description: Optional[str] = None
    discount_percent: int
    valid_from: UtcDateTime
    valid_to: UtcDateTime
    is_active: bool
    created_at: UtcDateTime


class AdminStatsResponse(ApiModel):
    """Dashboard counters for the back office."""

    total_users: int
    total_bookings: int
    pending_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    unread_messages: int
    total_revenue: float = Field(..., description="Sum of totalPrice over confirmed bookings")
    low_stock_items: int
    subscribers: int


class DistanceResponse(ApiModel):
    origin: str
    destination: str
    distance_text: str
    distance_meters: int
    duration_text: str
    duration_seconds: int
