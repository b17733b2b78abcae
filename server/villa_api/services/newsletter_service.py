"""Newsletter subscriptions and campaign delivery."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.marketing import NewsletterSubscriber
from ..schemas.messaging import EmailType
from . import templates
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class NewsletterService:
    """Service for the newsletter mailing list."""

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications

    async def get_subscriber_by_email(self, email: str) -> Optional[NewsletterSubscriber]:
        result = await self.db.execute(
            select(NewsletterSubscriber).where(func.lower(NewsletterSubscriber.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def subscribe(self, email: str, first_name: Optional[str] = None) -> NewsletterSubscriber:
        """Add an address to the list, reactivating it if it unsubscribed earlier."""
        subscriber = await self.get_subscriber_by_email(email)
        if subscriber is None:
            subscriber = NewsletterSubscriber(email=email.lower(), first_name=first_name, is_active=True)
            self.db.add(subscriber)
            event = "Newsletter subscriber added"
        else:
            subscriber.is_active = True
            if first_name:
                subscriber.first_name = first_name
            event = "Newsletter subscriber reactivated"

        await self.db.commit()
        await self.db.refresh(subscriber)
        logger.info(event, extra={"subscriber_id": subscriber.id})
        return subscriber

    async def unsubscribe(self, email: str) -> bool:
        """Deactivate an address. Returns False if it was never subscribed."""
        subscriber = await self.get_subscriber_by_email(email)
        if subscriber is None:
            return False
        if subscriber.is_active:
            subscriber.is_active = False
            await self.db.commit()
            logger.info("Newsletter subscriber deactivated", extra={"subscriber_id": subscriber.id})
        return True

    async def list_active(self) -> List[NewsletterSubscriber]:
        result = await self.db.execute(
            select(NewsletterSubscriber)
            .where(NewsletterSubscriber.is_active.is_(True))
            .order_by(NewsletterSubscriber.id)
        )
        return list(result.scalars().all())

    async def count_active(self) -> int:
        result = await self.db.execute(
            select(func.count(NewsletterSubscriber.id)).where(NewsletterSubscriber.is_active.is_(True))
        )
        return result.scalar_one()

    async def send_campaign(self, subject: str, content: str) -> Tuple[int, int, int]:
        """
        Email a campaign to every active subscriber.

        ``{{name}}`` and ``{{email}}`` in the content are filled in per
        recipient. Individual delivery failures are counted, not raised.

        Returns:
            (sent, failed, total)
        """
        subscribers = await self.list_active()
        sent = failed = 0
        for subscriber in subscribers:
            name = subscriber.first_name or subscriber.email.split("@")[0]
            html = templates.render_placeholders(content, name, subscriber.email)
            delivered = await self.notifications.send_email(
                subscriber.email,
                subject,
                html,
                EmailType.NEWSLETTER,
                to_name=subscriber.first_name,
            )
            if delivered:
                sent += 1
            else:
                failed += 1

        logger.info(
            "Newsletter campaign sent",
            extra={"subject": subject, "sent": sent, "failed": failed, "total": len(subscribers)}
        )
        return sent, failed, len(subscribers)
