"""Dashboard statistics for the back office."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.booking import BookingStatus
from ..schemas.marketing import AdminStatsResponse
from .booking_service import BookingService
from .inventory_service import InventoryService
from .message_service import ContactService
from .newsletter_service import NewsletterService
from .user_service import UserService


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_admin_stats(self) -> AdminStatsResponse:
        bookings = BookingService(self.db)
        by_status = await bookings.count_by_status()

        return AdminStatsResponse(
            total_users=await UserService(self.db).count_users(),
            total_bookings=sum(by_status.values()),
            pending_bookings=by_status[BookingStatus.PENDING.value],
            confirmed_bookings=by_status[BookingStatus.CONFIRMED.value],
            cancelled_bookings=by_status[BookingStatus.CANCELLED.value],
            unread_messages=await ContactService(self.db).count_unread(),
            total_revenue=await bookings.confirmed_revenue(),
            low_stock_items=await InventoryService(self.db).count_low_stock(),
            subscribers=await NewsletterService(self.db).count_active(),
        )
