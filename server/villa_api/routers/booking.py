"""Booking router for guests managing their own stays."""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, DB_DEPENDENCY, NOTIFICATIONS_DEPENDENCY
from ..core.exceptions import ProblemDetailsException, ValidationError
from ..models.user import User
from ..schemas.booking import AvailabilityResponse, BookingResponse, CreateBookingRequest
from ..schemas.common import DateInput
from ..services.booking_service import BookingService
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])

_DATE_ADAPTER = TypeAdapter(DateInput)


def _convert_booking_to_schema(booking_model) -> BookingResponse:
    """Convert booking model to schema."""
    return BookingResponse.model_validate(booking_model)


def _parse_date(value: str, field: str):
    try:
        return _DATE_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(
            detail=f"{field} must be an ISO 8601 date",
            violations=[{"path": field, "message": "invalid date"}],
        )


@router.get("", response_model=List[BookingResponse])
async def list_my_bookings(
    user: User = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """List the caller's bookings, newest first."""
    bookings = await BookingService(db).list_bookings_for_user(user.id)
    return JSONResponse(
        status_code=200,
        content=[_convert_booking_to_schema(b).to_json() for b in bookings]
    )


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    user: User = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Book a stay for the caller.

    The booking starts pending. The guest receipt and the host alert are
    sent after the booking is stored; their failure does not fail the request.
    """
    booking_service = BookingService(db, notifications)

    try:
        booking = await booking_service.create_booking(user, request)
        return JSONResponse(status_code=201, content=_convert_booking_to_schema(booking).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "user_id": user.id,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Report whether any active booking overlaps the given range. Does not reserve anything."""
    start = _parse_date(start_date, "startDate")
    end = _parse_date(end_date, "endDate")
    if end <= start:
        raise ValidationError(
            detail="endDate must be after startDate",
            violations=[{"path": "endDate", "message": "must be after startDate"}],
        )

    conflicts = await BookingService(db).count_overlapping(start, end)
    response_data = AvailabilityResponse(available=conflicts == 0, conflicts=conflicts)
    return JSONResponse(status_code=200, content=response_data.to_json())


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user: User = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    booking = await BookingService(db).get_booking_for_user(booking_id, user)
    return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_json())
