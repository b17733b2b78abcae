"""Contact form and guest chat services."""

import logging
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.message import ChatMessage, ContactMessage
from ..models.user import User
from ..schemas.messaging import CreateContactMessageRequest
from .notification_service import NotificationService
from .user_service import UserService

logger = logging.getLogger(__name__)


class ContactService:
    """Service for messages sent through the public contact form."""

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications

    async def create_message(self, request: CreateContactMessageRequest) -> ContactMessage:
        """
        Store a contact form submission and alert the administrator.

        The administrator email is best effort; the message is stored either way.
        """
        message = ContactMessage(
            name=request.name,
            email=str(request.email),
            phone=request.phone,
            subject=request.subject,
            message=request.message,
            read=False,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)

        logger.info("Contact message received", extra={"contact_message_id": message.id, "sender": message.email})

        if self.notifications is not None:
            await self.notifications.notify_contact_message(message)

        return message

    async def list_messages(self, unread_only: bool = False) -> List[ContactMessage]:
        stmt = select(ContactMessage).order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
        if unread_only:
            stmt = stmt.where(ContactMessage.read.is_(False))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_message_or_raise(self, message_id: int) -> ContactMessage:
        message = await self.db.get(ContactMessage, message_id)
        if message is None:
            logger.warning("Contact message not found", extra={"contact_message_id": message_id})
            raise NotFoundError(resource_type="message", resource_id=message_id)
        return message

    async def mark_read(self, message_id: int) -> ContactMessage:
        """Mark a message as read. Marking an already-read message is a no-op."""
        message = await self.get_message_or_raise(message_id)
        if not message.read:
            message.read = True
            await self.db.commit()
            await self.db.refresh(message)
            logger.info("Contact message marked read", extra={"contact_message_id": message_id})
        return message

    async def delete_message(self, message_id: int) -> None:
        message = await self.get_message_or_raise(message_id)
        await self.db.delete(message)
        await self.db.commit()
        logger.info("Contact message deleted", extra={"contact_message_id": message_id})

    async def count_unread(self) -> int:
        result = await self.db.execute(
            select(func.count(ContactMessage.id)).where(ContactMessage.read.is_(False))
        )
        return result.scalar_one()


class ChatService:
    """Service for the chat thread between each guest and the host."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def post_guest_message(self, user: User, text: str) -> ChatMessage:
        return await self._post(user.id, text, is_from_admin=False)

    async def post_admin_message(self, user_id: int, text: str) -> ChatMessage:
        """
        Reply in a guest's thread.

        Raises:
            NotFoundError: If the guest does not exist
        """
        await UserService(self.db).get_user_by_id_or_raise(user_id)
        return await self._post(user_id, text, is_from_admin=True)

    async def _post(self, user_id: int, text: str, is_from_admin: bool) -> ChatMessage:
        message = ChatMessage(user_id=user_id, message=text, is_from_admin=is_from_admin, read=False)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info(
            "Chat message posted",
            extra={"chat_message_id": message.id, "user_id": user_id, "is_from_admin": is_from_admin}
        )
        return message

    async def get_thread(self, user_id: int, mark_admin_messages_read: bool = False) -> List[ChatMessage]:
        """
        Return a guest's thread, oldest first.

        Args:
            user_id: Thread owner
            mark_admin_messages_read: Mark the host's replies as read, used when the guest opens the thread
        """
        if mark_admin_messages_read:
            await self.db.execute(
                update(ChatMessage)
                .where(
                    ChatMessage.user_id == user_id,
                    ChatMessage.is_from_admin.is_(True),
                    ChatMessage.read.is_(False),
                )
                .values(read=True)
            )
            await self.db.commit()

        stmt = (
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[ChatMessage]:
        stmt = select(ChatMessage).order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
