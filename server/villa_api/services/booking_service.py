"""Booking service for stay reservations and their status lifecycle."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import InvalidStatusTransitionError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.timeutils import utcnow
from ..models.booking import Booking, BookingSource, BookingStatus, can_transition
from ..models.user import User
from ..schemas.booking import CreateBookingRequest, ManualBookingRequest
from .notification_service import NotificationService
from .user_service import UserService

logger = logging.getLogger(__name__)


class BookingService:
    """Service for booking operations."""

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications

    def _check_guest_count(self, number_of_guests: int) -> None:
        if number_of_guests > settings.max_guests:
            raise ValidationError(
                detail=f"A booking can include at most {settings.max_guests} guests",
                violations=[{"path": "numberOfGuests", "message": f"must be at most {settings.max_guests}"}],
            )

    async def create_booking(self, user: User, request: CreateBookingRequest) -> Booking:
        """
        Create a booking for the calling user.

        The booking always starts ``pending``. Notification failures are logged
        and do not affect the result.

        Args:
            user: Guest making the booking
            request: Stay details

        Returns:
            Created booking entity

        Raises:
            ValidationError: If the guest count exceeds the villa's capacity
        """
        self._check_guest_count(request.number_of_guests)

        booking = Booking(
            user_id=user.id,
            start_date=request.start_date,
            end_date=request.end_date,
            number_of_guests=request.number_of_guests,
            status=BookingStatus.PENDING.value,
            notes=request.notes,
            guest_name=request.guest_name or user.full_name or user.username,
            guest_email=user.email,
            guest_phone=request.guest_phone or user.phone,
            total_price=request.total_price,
            source=BookingSource.WEBSITE.value,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(booking.source)
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": booking.id,
                "user_id": user.id,
                "start_date": booking.start_date.isoformat(),
                "end_date": booking.end_date.isoformat(),
                "guests": booking.number_of_guests,
            }
        )

        if self.notifications is not None:
            await self.notifications.notify_booking_created(booking, booking.guest_name, booking.guest_email)

        return booking

    async def create_manual_booking(self, request: ManualBookingRequest) -> Booking:
        """
        Record a booking taken by phone, email or in person.

        The booking is linked to an existing account when one has the guest's email.
        """
        self._check_guest_count(request.number_of_guests)

        existing_user = await UserService(self.db).get_user_by_email(str(request.guest_email))

        booking = Booking(
            user_id=existing_user.id if existing_user else None,
            start_date=request.start_date,
            end_date=request.end_date,
            number_of_guests=request.number_of_guests,
            status=request.status.value,
            notes=request.notes,
            guest_name=request.guest_name,
            guest_email=str(request.guest_email).lower(),
            guest_phone=request.guest_phone,
            total_price=request.total_price,
            source=request.source.value,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(booking.source)
        logger.info(
            "Manual booking created",
            extra={
                "booking_id": booking.id,
                "linked_user_id": booking.user_id,
                "source": booking.source,
                "status": booking.status,
            }
        )
        return booking

    async def get_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        """Get booking by ID, reloading any stale state."""
        return await self.db.get(Booking, booking_id, populate_existing=True)

    async def get_booking_by_id_or_raise(self, booking_id: int) -> Booking:
        """
        Get booking by ID or raise NotFoundError.

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning("Booking not found", extra={"booking_id": booking_id})
            raise NotFoundError(resource_type="booking", resource_id=booking_id)
        return booking

    async def get_booking_for_user(self, booking_id: int, user: User) -> Booking:
        """Return a booking the caller may see: their own, or any for administrators."""
        booking = await self.get_booking_by_id_or_raise(booking_id)
        if not user.is_admin and booking.user_id != user.id:
            # Do not reveal other guests' bookings
            raise NotFoundError(resource_type="booking", resource_id=booking_id)
        return booking

    async def list_bookings_for_user(self, user_id: int) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        stmt = select(Booking).order_by(Booking.start_date.desc(), Booking.id.desc())
        if status is not None:
            stmt = stmt.where(Booking.status == status.value)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_status(self, booking_id: int, new_status: BookingStatus) -> Tuple[Booking, bool]:
        """
        Move a booking to a new status.

        Setting the current status again is accepted and changes nothing.

        Args:
            booking_id: Booking to update
            new_status: Target status

        Returns:
            The booking and whether its status actually changed

        Raises:
            NotFoundError: If booking not found
            InvalidStatusTransitionError: If the transition is not allowed
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)
        current = BookingStatus(booking.status)
        new_status = BookingStatus(new_status)

        if not can_transition(current, new_status):
            logger.warning(
                "Booking status transition rejected",
                extra={"booking_id": booking_id, "from_status": current.value, "to_status": new_status.value}
            )
            raise InvalidStatusTransitionError(booking_id, current.value, new_status.value)

        if current == new_status:
            return booking, False

        booking.status = new_status.value
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_status_change(current.value, new_status.value)
        logger.info(
            "Booking status updated",
            extra={"booking_id": booking_id, "from_status": current.value, "to_status": new_status.value}
        )

        if new_status == BookingStatus.CONFIRMED and self.notifications is not None:
            guest_name, phone = await self.guest_contact(booking)
            await self.notifications.notify_booking_confirmed(booking, guest_name, phone)

        return booking, True

    async def delete_booking(self, booking_id: int) -> None:
        booking = await self.get_booking_by_id_or_raise(booking_id)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info("Booking deleted", extra={"booking_id": booking_id})

    async def count_overlapping(self, start_date: datetime, end_date: datetime) -> int:
        """Count non-cancelled bookings overlapping the half-open range [start, end)."""
        stmt = select(func.count(Booking.id)).where(
            and_(
                Booking.status != BookingStatus.CANCELLED.value,
                Booking.start_date < end_date,
                Booking.end_date > start_date,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def count_by_status(self) -> dict:
        stmt = select(Booking.status, func.count(Booking.id)).group_by(Booking.status)
        result = await self.db.execute(stmt)
        counts = {status.value: 0 for status in BookingStatus}
        for status, count in result.all():
            counts[status] = count
        return counts

    async def confirmed_revenue(self) -> float:
        stmt = select(func.coalesce(func.sum(Booking.total_price), 0)).where(
            Booking.status == BookingStatus.CONFIRMED.value
        )
        result = await self.db.execute(stmt)
        return float(result.scalar_one() or 0)

    async def bookings_needing_checkout_reminder(self, now: Optional[datetime] = None) -> List[Booking]:
        """Confirmed bookings checking out within the next day that have not been reminded."""
        now = now or utcnow()
        stmt = select(Booking).where(
            and_(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.reminder_sent_at.is_(None),
                Booking.end_date > now,
                Booking.end_date <= now + timedelta(days=1),
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_reminder_sent(self, booking_id: int) -> None:
        await self.db.execute(
            update(Booking).where(Booking.id == booking_id).values(reminder_sent_at=utcnow())
        )
        await self.db.commit()

    async def guest_contact(self, booking: Booking) -> Tuple[str, Optional[str]]:
        """Return the display name and phone to use when messaging the booking's guest."""
        user = await self.db.get(User, booking.user_id) if booking.user_id else None
        name = booking.guest_name or (user.full_name if user else None) or (user.username if user else "Ospite")
        phone = booking.guest_phone or (user.phone if user else None)
        return name, phone

