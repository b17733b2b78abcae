"""FastAPI routers package."""

from .admin import router as admin_router
from .auth import router as auth_router
from .blog import router as blog_router
from .booking import router as booking_router
from .campaign import router as campaign_router
from .chat import router as chat_router
from .contact import router as contact_router
from .faq import router as faq_router
from .health import router as health_router
from .inventory import router as inventory_router
from .location import router as location_router
from .metrics import router as metrics_router
from .promotion import router as promotion_router

__all__ = [
    "admin_router",
    "auth_router",
    "blog_router",
    "booking_router",
    "campaign_router",
    "chat_router",
    "contact_router",
    "faq_router",
    "health_router",
    "inventory_router",
    "location_router",
    "metrics_router",
    "promotion_router",
]
