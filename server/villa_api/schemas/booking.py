"""Booking-related Pydantic schemas."""

from typing import Optional

from pydantic import AliasChoices, EmailStr, Field, model_validator

from ..core.timeutils import UtcDateTime
from ..models.booking import BookingSource, BookingStatus
from .common import ApiModel, DateInput, UserSummary


class _DateRangeModel(ApiModel):
    """Base for requests carrying a startDate/endDate pair."""

    @model_validator(mode="after")
    def check_date_order(self):
        """Reject ranges whose end is not after their start."""
        if self.end_date <= self.start_date:
            raise ValueError("endDate must be after startDate")
        return self


class CreateBookingRequest(_DateRangeModel):
    """Request schema for a guest booking their own stay."""

    start_date: DateInput = Field(..., description="Check-in (ISO 8601 date or timestamp)")
    end_date: DateInput = Field(..., description="Check-out (ISO 8601 date or timestamp)")
    number_of_guests: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("numberOfGuests", "guestCount", "number_of_guests"),
        description="Number of guests"
    )
    notes: Optional[str] = Field(None, max_length=2000, description="Requests for the host")
    guest_name: Optional[str] = Field(None, max_length=255)
    guest_phone: Optional[str] = Field(None, max_length=32)
    total_price: Optional[float] = Field(None, ge=0, description="Quoted total price")


class ManualBookingRequest(_DateRangeModel):
    """Booking entered by an administrator (phone, email or walk-in reservation)."""

    guest_name: str = Field(..., min_length=1, max_length=255)
    guest_email: EmailStr
    guest_phone: Optional[str] = Field(None, max_length=32)
    start_date: DateInput = Field(..., validation_alias=AliasChoices("checkIn", "startDate", "start_date"))
    end_date: DateInput = Field(..., validation_alias=AliasChoices("checkOut", "endDate", "end_date"))
    number_of_guests: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("numberOfGuests", "guestCount", "number_of_guests"),
    )
    total_price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)
    status: BookingStatus = BookingStatus.PENDING
    source: BookingSource = BookingSource.PHONE


class UpdateBookingStatusRequest(ApiModel):
    status: BookingStatus = Field(..., description="Target status")


class BookingResponse(ApiModel):
    """Booking response schema."""

    id: int = Field(..., description="Booking ID")
    user_id: Optional[int] = Field(None, description="Owning user, null for unregistered guests")
    start_date: UtcDateTime = Field(..., description="Check-in")
    end_date: UtcDateTime = Field(..., description="Check-out")
    number_of_guests: int = Field(..., description="Number of guests")
    status: BookingStatus = Field(..., description="Current status")
    notes: Optional[str] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    total_price: Optional[float] = None
    source: BookingSource = BookingSource.WEBSITE
    created_at: UtcDateTime
    updated_at: UtcDateTime


class AdminBookingResponse(BookingResponse):
    """Booking with the owning account, for the back office."""

    user: Optional[UserSummary] = None


class AvailabilityResponse(ApiModel):
    available: bool = Field(..., description="True when no active booking overlaps the range")
    conflicts: int = Field(..., ge=0, description="Number of overlapping non-cancelled bookings")
