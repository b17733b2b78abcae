"""Service layer package."""

from .auth_service import AuthService, SessionService
from .booking_service import BookingService
from .content_service import BlogService, FaqService
from .distance_service import DistanceService
from .inventory_service import InventoryService
from .message_service import ChatService, ContactService
from .newsletter_service import NewsletterService
from .notification_service import NotificationService
from .promotion_service import PromotionService
from .stats_service import StatsService
from .user_service import UserService

__all__ = [
    "AuthService",
    "BlogService",
    "BookingService",
    "ChatService",
    "ContactService",
    "DistanceService",
    "FaqService",
    "InventoryService",
    "NewsletterService",
    "NotificationService",
    "PromotionService",
    "SessionService",
    "StatsService",
    "UserService",
]
