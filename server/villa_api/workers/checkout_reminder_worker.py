"""Background worker that reminds guests of their check-out."""

from typing import Callable, Optional

from ..core.observability import get_logger
from ..core.timeutils import utcnow
from ..services.booking_service import BookingService
from ..services.notification_service import NotificationService, get_notification_service
from .base import BaseWorker

logger = get_logger(__name__)


class CheckoutReminderWorker(BaseWorker):
    """
    Messages guests of confirmed bookings that check out within a day.

    Each booking is reminded at most once. Bookings whose guest has no phone
    number, or whose message could not be delivered, stay eligible and are
    retried on the next run until check-out passes.
    """

    def __init__(
        self,
        interval_seconds: int = 6 * 3600,
        notifications_factory: Callable[[], NotificationService] = get_notification_service,
        **kwargs,
    ):
        super().__init__(name="checkout_reminder", interval_seconds=interval_seconds, **kwargs)
        self.notifications_factory = notifications_factory

    async def process(self) -> int:
        notifications = self.notifications_factory()
        reminded = 0

        async with self.session_factory() as db:
            booking_service = BookingService(db)
            due = await booking_service.bookings_needing_checkout_reminder(utcnow())

            for booking in due:
                guest_name, phone = await booking_service.guest_contact(booking)
                if not phone:
                    logger.info("checkout_reminder_skipped_no_phone", worker=self.name, booking_id=booking.id)
                    continue

                if await notifications.send_checkout_reminder(guest_name, phone, booking.end_date):
                    await booking_service.mark_reminder_sent(booking.id)
                    reminded += 1

        if reminded:
            logger.info("checkout_reminders_sent", worker=self.name, reminded=reminded)
        return reminded
