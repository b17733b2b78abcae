"""Back-office router: bookings, contact messages, users and dashboard."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY, NOTIFICATIONS_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..models.booking import BookingStatus
from ..models.user import User
from ..schemas.booking import AdminBookingResponse, ManualBookingRequest, UpdateBookingStatusRequest
from ..schemas.common import SuccessResponse
from ..schemas.marketing import AdminStatsResponse
from ..schemas.messaging import ContactMessageResponse
from ..schemas.user import ManualUserRequest, ManualUserResponse, UpdateUserRequest, UserResponse
from ..services.booking_service import BookingService
from ..services.message_service import ContactService
from ..services.notification_service import NotificationService
from ..services.stats_service import StatsService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _convert_booking_to_schema(booking_model) -> AdminBookingResponse:
    return AdminBookingResponse.model_validate(booking_model)


def _success() -> JSONResponse:
    return JSONResponse(status_code=200, content=SuccessResponse(success=True).to_json())


# Bookings

@router.get("/bookings", response_model=List[AdminBookingResponse])
async def list_bookings(
    status: Optional[BookingStatus] = Query(None, description="Only bookings in this status"),
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    bookings = await BookingService(db).list_all_bookings(status)
    return JSONResponse(
        status_code=200,
        content=[_convert_booking_to_schema(b).to_json() for b in bookings]
    )


@router.patch("/bookings/{booking_id}/status", response_model=AdminBookingResponse)
async def update_booking_status(
    booking_id: int,
    request: UpdateBookingStatusRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Move a booking through its lifecycle.

    Confirming a booking messages the guest when a phone number is known.
    A cancelled booking must be reinstated to pending before it can be confirmed.
    """
    booking_service = BookingService(db, notifications)

    try:
        booking, changed = await booking_service.update_status(booking_id, request.status)
        booking = await booking_service.get_booking_by_id_or_raise(booking.id)

        logger.info(
            "Booking status request handled",
            extra={
                "booking_id": booking_id,
                "status": booking.status,
                "changed": changed,
                "admin_id": admin.id
            }
        )
        return JSONResponse(status_code=200, content=_convert_booking_to_schema(booking).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking status update",
            extra={"booking_id": booking_id, "requested_status": request.status.value, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("/bookings/{booking_id}", response_model=SuccessResponse)
async def delete_booking(
    booking_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await BookingService(db).delete_booking(booking_id)
    return _success()


@router.post("/manual-booking", response_model=AdminBookingResponse, status_code=201)
async def create_manual_booking(
    request: ManualBookingRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Record a reservation taken outside the website."""
    booking_service = BookingService(db)

    try:
        booking = await booking_service.create_manual_booking(request)
        booking = await booking_service.get_booking_by_id_or_raise(booking.id)
        return JSONResponse(status_code=201, content=_convert_booking_to_schema(booking).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in manual booking creation",
            extra={"guest_email": str(request.guest_email), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


# Contact messages

@router.get("/messages", response_model=List[ContactMessageResponse])
async def list_messages(
    unread: bool = Query(False, description="Only unread messages"),
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    messages = await ContactService(db).list_messages(unread_only=unread)
    return JSONResponse(
        status_code=200,
        content=[ContactMessageResponse.model_validate(m).to_json() for m in messages]
    )


@router.patch("/messages/{message_id}/read", response_model=ContactMessageResponse)
async def mark_message_read(
    message_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    message = await ContactService(db).mark_read(message_id)
    return JSONResponse(status_code=200, content=ContactMessageResponse.model_validate(message).to_json())


@router.delete("/messages/{message_id}", response_model=SuccessResponse)
async def delete_message(
    message_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await ContactService(db).delete_message(message_id)
    return _success()


# Users

@router.get("/users", response_model=List[UserResponse])
async def list_users(admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    users = await UserService(db).list_users()
    return JSONResponse(status_code=200, content=[UserResponse.model_validate(u).to_json() for u in users])


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    user = await UserService(db).update_user(user_id, request)
    return JSONResponse(status_code=200, content=UserResponse.model_validate(user).to_json())


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Delete an account. Administrators cannot delete themselves."""
    await UserService(db).delete_user(user_id, acting_user_id=admin.id)
    return _success()


@router.post("/manual-user", response_model=ManualUserResponse, status_code=201)
async def create_manual_user(
    request: ManualUserRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Create an account for a guest.

    When no password is given a temporary one is generated and returned
    once in ``temporaryPassword``.
    """
    user, temporary_password = await UserService(db).create_manual_user(request)

    logger.info(
        "Manual user created",
        extra={"user_id": user.id, "admin_id": admin.id, "generated_password": temporary_password is not None}
    )
    response_data = ManualUserResponse(
        user=UserResponse.model_validate(user),
        temporary_password=temporary_password,
    )
    return JSONResponse(status_code=201, content=response_data.to_json())


# Dashboard

@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(admin: User = AdminUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    stats = await StatsService(db).get_admin_stats()
    return JSONResponse(status_code=200, content=stats.to_json())
