"""Booking model and status state machine."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .user import User


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BookingSource(str, Enum):
    """Channel through which a booking was received."""
    WEBSITE = "website"
    PHONE = "phone"
    EMAIL = "email"
    WALK_IN = "walk_in"
    OTHER = "other"


# Statuses reachable from each status, besides staying put.
ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.PENDING, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset({BookingStatus.PENDING}),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Return True if a booking in ``current`` may be set to ``target``."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


class Booking(Base):
    """A guest's reserved stay at the villa."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Null for manual bookings whose guest has no account
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    number_of_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    guest_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guest_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    total_price: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default=BookingSource.WEBSITE.value)

    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("number_of_guests > 0", name="ck_booking_guests_positive"),
        CheckConstraint("end_date > start_date", name="ck_booking_dates_ordered"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="ck_booking_status_valid"
        ),
        CheckConstraint("total_price IS NULL OR total_price >= 0", name="ck_booking_price_non_negative"),
    )

    user: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, user_id={self.user_id}, start_date={self.start_date}, "
            f"end_date={self.end_date}, status={self.status})>"
        )
