"""Models module exporting all database models."""

from .blog import BlogPost
from .booking import ALLOWED_TRANSITIONS, Booking, BookingSource, BookingStatus, can_transition
from .faq import Faq, FaqVote
from .inventory import InventoryItem, InventoryMovement, MovementType, signed_delta
from .marketing import NewsletterSubscriber, Promotion
from .message import ChatMessage, ContactMessage
from .user import User, UserSession

__all__ = [
    # Accounts
    "User",
    "UserSession",

    # Bookings
    "Booking",
    "BookingStatus",
    "BookingSource",
    "ALLOWED_TRANSITIONS",
    "can_transition",

    # Messaging
    "ContactMessage",
    "ChatMessage",

    # Content
    "BlogPost",
    "Faq",
    "FaqVote",

    # Inventory
    "InventoryItem",
    "InventoryMovement",
    "MovementType",
    "signed_delta",

    # Marketing
    "Promotion",
    "NewsletterSubscriber",
]
