"""Newsletter and outbound messaging router."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, DB_DEPENDENCY, NOTIFICATIONS_DEPENDENCY
from ..core.exceptions import ExternalServiceError
from ..models.user import User
from ..schemas.common import MessageResponse, SuccessResponse
from ..schemas.messaging import (
    CustomEmailRequest,
    NewsletterSendRequest,
    NewsletterSendResponse,
    NewsletterSubscribeRequest,
    NewsletterSubscriberResponse,
    NewsletterUnsubscribeRequest,
    SendSmsRequest,
    WelcomeEmailRequest,
)
from ..services import templates
from ..services.newsletter_service import NewsletterService
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["campaigns"])


@router.post("/newsletter/subscribe", response_model=NewsletterSubscriberResponse, status_code=201)
async def subscribe(request: NewsletterSubscribeRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    subscriber = await NewsletterService(db).subscribe(str(request.email), request.first_name)
    return JSONResponse(status_code=201, content=NewsletterSubscriberResponse.model_validate(subscriber).to_json())


@router.post("/newsletter/unsubscribe", response_model=MessageResponse)
async def unsubscribe(request: NewsletterUnsubscribeRequest, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    await NewsletterService(db).unsubscribe(str(request.email))
    return JSONResponse(status_code=200, content=MessageResponse(message="Unsubscribed").to_json())


@router.post("/newsletter/send", response_model=NewsletterSendResponse)
async def send_newsletter(
    request: NewsletterSendRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """Email the campaign to every active subscriber and report delivery counts."""
    sent, failed, total = await NewsletterService(db, notifications).send_campaign(request.subject, request.content)
    response_data = NewsletterSendResponse(sent=sent, failed=failed, total=total)
    return JSONResponse(status_code=200, content=response_data.to_json())


@router.post("/admin/send-custom-email", response_model=SuccessResponse)
async def send_custom_email(
    request: CustomEmailRequest,
    admin: User = AdminUser,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Send a one-off email written by the host.

    ``{{name}}`` and ``{{email}}`` in the content are replaced with the
    recipient's details.
    """
    email = str(request.email)
    name = request.name or email.split("@")[0]
    html = templates.render_placeholders(request.content, name, email)

    delivered = await notifications.send_email(email, request.subject, html, request.email_type, to_name=request.name)
    if not delivered:
        raise ExternalServiceError("sendgrid", detail="The email could not be delivered")

    logger.info("Custom email sent", extra={"to": email, "admin_id": admin.id})
    return JSONResponse(status_code=200, content=SuccessResponse(success=True, message="Email sent").to_json())


@router.post("/send-welcome-email", response_model=SuccessResponse)
async def send_welcome_email(
    request: WelcomeEmailRequest,
    admin: User = AdminUser,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    delivered = await notifications.send_welcome_email(str(request.email), request.name)
    return JSONResponse(status_code=200, content=SuccessResponse(success=delivered).to_json())


@router.post("/send-sms", response_model=SuccessResponse)
async def send_sms(
    request: SendSmsRequest,
    admin: User = AdminUser,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """Send a text message to a guest over SMS or WhatsApp."""
    delivered = await notifications.send_text(request.phone_number, request.message, request.channel)
    if not delivered:
        raise ExternalServiceError("bird", detail=f"The {request.channel.value} message could not be delivered")

    logger.info("Text message sent", extra={"channel": request.channel.value, "admin_id": admin.id})
    return JSONResponse(status_code=200, content=SuccessResponse(success=True, message="Message sent").to_json())
