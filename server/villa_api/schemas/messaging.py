"""Contact form, chat, newsletter and outbound notification schemas."""

from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field

from ..core.timeutils import UtcDateTime
from .common import ApiModel


class CreateContactMessageRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)
    phone: Optional[str] = Field(None, max_length=32)
    subject: Optional[str] = Field(None, max_length=255)


class ContactMessageResponse(ApiModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    read: bool
    created_at: UtcDateTime


class CreateChatMessageRequest(ApiModel):
    message: str = Field(..., min_length=1, max_length=5000)


class AdminChatMessageRequest(ApiModel):
    user_id: int = Field(..., description="Guest whose thread receives the reply")
    message: str = Field(..., min_length=1, max_length=5000)


class ChatMessageResponse(ApiModel):
    id: int
    user_id: int
    is_from_admin: bool
    message: str
    read: bool
    created_at: UtcDateTime


class NewsletterSubscribeRequest(ApiModel):
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)


class NewsletterUnsubscribeRequest(ApiModel):
    email: EmailStr


class NewsletterSubscriberResponse(ApiModel):
    id: int
    email: str
    first_name: Optional[str] = None
    is_active: bool
    created_at: UtcDateTime


class NewsletterSendRequest(ApiModel):
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, description="HTML body; {{name}} and {{email}} are substituted")


class NewsletterSendResponse(ApiModel):
    sent: int
    failed: int
    total: int


class EmailType(str, Enum):
    """Purpose of an outgoing email, which selects the sender identity."""
    RESET = "reset"
    WELCOME = "welcome"
    BOOKING = "booking"
    CONTACT = "contact"
    ADMIN = "admin"
    NEWSLETTER = "newsletter"


class CustomEmailRequest(ApiModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    email_type: EmailType = EmailType.ADMIN


class WelcomeEmailRequest(ApiModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)


class MessageChannel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"


class SendSmsRequest(ApiModel):
    phone_number: str = Field(..., min_length=4, max_length=32)
    message: str = Field(..., min_length=1, max_length=1600)
    channel: MessageChannel = MessageChannel.SMS
