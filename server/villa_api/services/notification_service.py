"""Outbound email (SendGrid) and WhatsApp/SMS (Bird) notifications.

Every send returns a bool. Delivery problems are logged and reported as
False; they never propagate to the caller, so a failed notification cannot
abort the action that triggered it.
"""

import logging
import re
from typing import Any, Dict, NamedTuple, Optional

import httpx

from ..core.config import settings
from ..core.observability import metrics_collector
from ..schemas.messaging import EmailType, MessageChannel
from . import templates

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
BIRD_API_URL = "https://api.bird.com"

_NON_DIGITS = re.compile(r"\D")


class SenderIdentity(NamedTuple):
    local_part: str
    name: str

    @property
    def address(self) -> str:
        return f"{self.local_part}@{settings.email_domain}"


SENDERS: Dict[str, SenderIdentity] = {
    "noreply": SenderIdentity("noreply", settings.site_name),
    "support": SenderIdentity("support", f"{settings.site_name} Support"),
    "booking": SenderIdentity("booking", f"{settings.site_name} Prenotazioni"),
    "admin": SenderIdentity("admin", f"{settings.site_name} Admin"),
    "newsletter": SenderIdentity("newsletter", f"{settings.site_name} News"),
}

SENDER_FOR_TYPE: Dict[EmailType, str] = {
    EmailType.RESET: "noreply",
    EmailType.WELCOME: "noreply",
    EmailType.BOOKING: "booking",
    EmailType.CONTACT: "admin",
    EmailType.ADMIN: "admin",
    EmailType.NEWSLETTER: "newsletter",
}


def sender_for(email_type: EmailType) -> SenderIdentity:
    """Return the sender identity used for an email of the given type."""
    return SENDERS[SENDER_FOR_TYPE[EmailType(email_type)]]


def normalize_phone(phone_number: str, country_code: Optional[str] = None) -> str:
    """
    Normalise a phone number to E.164-style ``+<digits>``.

    Non-digits are stripped and the default country code is prefixed unless
    the number already starts with it.
    """
    country_code = country_code or settings.default_country_code
    digits = _NON_DIGITS.sub("", phone_number)
    if not digits.startswith(country_code):
        digits = f"{country_code}{digits}"
    return f"+{digits}"


class EmailSender:
    """Thin SendGrid v3 client."""

    def __init__(self, api_key: Optional[str], http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(
        self,
        to_email: str,
        subject: str,
        html: str,
        email_type: EmailType = EmailType.ADMIN,
        to_name: Optional[str] = None,
    ) -> bool:
        """
        Send one HTML email.

        Args:
            to_email: Recipient address
            subject: Subject line
            html: HTML body
            email_type: Purpose of the email, selects the sender identity
            to_name: Optional recipient display name

        Returns:
            True if SendGrid accepted the message
        """
        email_type = EmailType(email_type)
        if not self.configured:
            logger.warning("SendGrid API key not configured, email not sent", extra={"to": to_email, "subject": subject})
            metrics_collector.record_notification("email", False)
            return False

        sender = sender_for(email_type)
        recipient: Dict[str, Any] = {"email": to_email}
        if to_name:
            recipient["name"] = to_name

        payload = {
            "personalizations": [{"to": [recipient]}],
            "from": {"email": sender.address, "name": sender.name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self._post(SENDGRID_URL, payload, headers)
        except httpx.HTTPError as e:
            logger.error("SendGrid request failed", extra={"to": to_email, "error": str(e)})
            metrics_collector.record_notification("email", False)
            return False

        delivered = response.status_code in (200, 202)
        if delivered:
            logger.info("Email sent", extra={"to": to_email, "subject": subject, "email_type": email_type.value})
        else:
            logger.error(
                "SendGrid rejected email",
                extra={"to": to_email, "status_code": response.status_code, "body": response.text[:500]},
            )
        metrics_collector.record_notification("email", delivered)
        return delivered

    async def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            return await client.post(url, json=payload, headers=headers)


class BirdMessenger:
    """Bird client for WhatsApp and SMS text messages."""

    def __init__(
        self,
        api_key: Optional[str],
        workspace_id: Optional[str],
        sms_channel_id: Optional[str],
        whatsapp_channel_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.channels = {
            MessageChannel.SMS: sms_channel_id,
            MessageChannel.WHATSAPP: whatsapp_channel_id or sms_channel_id,
        }
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.workspace_id and self.channels[MessageChannel.SMS])

    async def send(self, phone_number: str, message: str, channel: MessageChannel = MessageChannel.SMS) -> bool:
        """Send a text message over the given channel; returns True on acceptance."""
        channel = MessageChannel(channel)
        if not self.configured:
            logger.warning("Bird credentials not configured, message not sent", extra={"channel": channel.value})
            metrics_collector.record_notification(channel.value, False)
            return False

        recipient = normalize_phone(phone_number)
        payload = {
            "receiver": {"contact": {"identifierValue": recipient}},
            "body": {"text": {"text": message}},
            "channelId": self.channels[channel],
        }
        url = f"{BIRD_API_URL}/workspaces/{self.workspace_id}/messages"
        headers = {"Authorization": f"AccessKey {self.api_key}"}

        try:
            if self.http_client is not None:
                response = await self.http_client.post(url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Bird request failed", extra={"channel": channel.value, "to": recipient, "error": str(e)})
            metrics_collector.record_notification(channel.value, False)
            return False

        delivered = response.is_success
        if delivered:
            logger.info("Message sent", extra={"channel": channel.value, "to": recipient})
        else:
            logger.error(
                "Bird rejected message",
                extra={"channel": channel.value, "to": recipient, "status_code": response.status_code},
            )
        metrics_collector.record_notification(channel.value, delivered)
        return delivered


class NotificationService:
    """Composes templates with the email and messaging clients."""

    def __init__(self, email: EmailSender, messenger: BirdMessenger):
        self.email = email
        self.messenger = messenger

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html: str,
        email_type: EmailType = EmailType.ADMIN,
        to_name: Optional[str] = None,
    ) -> bool:
        return await self.email.send(to_email, subject, html, email_type=email_type, to_name=to_name)

    async def send_text(self, phone_number: str, message: str, channel: MessageChannel = MessageChannel.SMS) -> bool:
        return await self.messenger.send(phone_number, message, channel)

    async def send_welcome_email(self, email: str, name: str) -> bool:
        content = templates.welcome_email(name)
        return await self.send_email(email, content.subject, content.html, EmailType.WELCOME, to_name=name)

    async def send_welcome_text(self, phone: str, name: str) -> bool:
        return await self.send_text(phone, templates.welcome_whatsapp(name), MessageChannel.WHATSAPP)

    async def notify_admin_new_user(self, user) -> bool:
        content = templates.new_user_admin_email(user.username, user.full_name or user.username, user.email)
        return await self.send_email(settings.admin_email, content.subject, content.html, EmailType.ADMIN)

    async def notify_contact_message(self, message) -> bool:
        content = templates.contact_notification_email(
            message.name,
            message.email,
            message.subject or "Contatto dal sito",
            message.message,
        )
        return await self.send_email(settings.admin_email, content.subject, content.html, EmailType.CONTACT)

    async def send_password_reset(self, user, reset_url: str) -> bool:
        content = templates.password_reset_email(user.full_name or user.username, reset_url)
        return await self.send_email(user.email, content.subject, content.html, EmailType.RESET)

    async def notify_booking_created(self, booking, guest_name: str, guest_email: Optional[str]) -> None:
        """Email the guest a receipt and alert the administrator by WhatsApp, falling back to SMS."""
        if guest_email:
            content = templates.booking_confirmation_email(
                guest_name,
                booking.start_date,
                booking.end_date,
                booking.number_of_guests,
                booking.id,
            )
            await self.send_email(guest_email, content.subject, content.html, EmailType.BOOKING, to_name=guest_name)

        if settings.admin_phone:
            sent = await self.send_text(
                settings.admin_phone,
                templates.admin_new_booking_whatsapp(guest_name, booking.start_date),
                MessageChannel.WHATSAPP,
            )
            if not sent:
                await self.send_text(
                    settings.admin_phone,
                    templates.admin_new_booking_sms(guest_name, booking.start_date),
                    MessageChannel.SMS,
                )

    async def notify_booking_confirmed(self, booking, guest_name: str, phone: Optional[str]) -> bool:
        """Tell the guest their stay is confirmed, by WhatsApp first and SMS as fallback."""
        if not phone:
            return False
        sent = await self.send_text(
            phone,
            templates.booking_confirmation_whatsapp(guest_name, booking.start_date, booking.end_date),
            MessageChannel.WHATSAPP,
        )
        if sent:
            return True
        return await self.send_text(
            phone,
            templates.booking_confirmation_sms(guest_name, booking.start_date, booking.end_date),
            MessageChannel.SMS,
        )

    async def send_checkout_reminder(self, guest_name: str, phone: str, check_out) -> bool:
        sent = await self.send_text(
            phone,
            templates.checkout_reminder_whatsapp(guest_name, check_out),
            MessageChannel.WHATSAPP,
        )
        if sent:
            return True
        return await self.send_text(
            phone,
            templates.checkout_reminder_sms(guest_name, check_out),
            MessageChannel.SMS,
        )


def build_notification_service(http_client: Optional[httpx.AsyncClient] = None) -> NotificationService:
    """Create a notification service from the application settings."""
    return NotificationService(
        email=EmailSender(settings.sendgrid_api_key, http_client=http_client),
        messenger=BirdMessenger(
            api_key=settings.bird_api_key,
            workspace_id=settings.bird_workspace_id,
            sms_channel_id=settings.bird_channel_id,
            whatsapp_channel_id=settings.bird_whatsapp_channel_id,
            http_client=http_client,
        ),
    )


_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """FastAPI dependency returning the process-wide notification service."""
    global _notification_service
    if _notification_service is None:
        _notification_service = build_notification_service()
    return _notification_service
