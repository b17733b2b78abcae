"""Unit tests for the SendGrid and Bird clients and the distance lookup."""

import json
from datetime import datetime

import httpx
import pytest

from villa_api.core.exceptions import ExternalServiceError, ServiceUnavailableError
from villa_api.schemas.messaging import EmailType, MessageChannel
from villa_api.services import templates
from villa_api.services.distance_service import DistanceService
from villa_api.services.notification_service import (
    BirdMessenger,
    EmailSender,
    NotificationService,
    normalize_phone,
    sender_for,
)


def test_normalize_phone():
    assert normalize_phone("333 123 4567") == "+393331234567"
    assert normalize_phone("+39 333-123-4567") == "+393331234567"
    assert normalize_phone("7700 900123", country_code="44") == "+447700900123"


def test_sender_identities():
    assert sender_for(EmailType.RESET).local_part == "noreply"
    assert sender_for(EmailType.BOOKING).local_part == "booking"
    assert sender_for(EmailType.CONTACT).local_part == "admin"
    assert sender_for(EmailType.NEWSLETTER).local_part == "newsletter"


def test_render_placeholders():
    assert templates.render_placeholders("Ciao {{name}}, {{email}}", "Anna", "anna@mail.it") == (
        "Ciao Anna, anna@mail.it"
    )


def test_templates_use_italian_dates():
    text = templates.booking_confirmation_sms("Anna", datetime(2025, 7, 1), datetime(2025, 7, 8))

    assert "01/07/2025" in text
    assert "08/07/2025" in text


@pytest.mark.asyncio
async def test_email_payload(http_client, outbox):
    sender = EmailSender("sg-key", http_client=http_client)

    delivered = await sender.send("anna@mail.it", "Benvenuta", "<p>Ciao</p>", EmailType.WELCOME, to_name="Anna")

    assert delivered is True
    request = outbox.requests[0]
    assert request.headers["Authorization"] == "Bearer sg-key"
    payload = json.loads(request.content)
    assert payload["personalizations"][0]["to"] == [{"email": "anna@mail.it", "name": "Anna"}]
    assert payload["subject"] == "Benvenuta"
    assert payload["content"] == [{"type": "text/html", "value": "<p>Ciao</p>"}]


@pytest.mark.asyncio
async def test_email_without_api_key_is_not_sent(http_client, outbox):
    delivered = await EmailSender(None, http_client=http_client).send("anna@mail.it", "Oggetto", "<p></p>")

    assert delivered is False
    assert outbox.requests == []


@pytest.mark.asyncio
async def test_email_rejected(http_client, outbox):
    outbox.status_code = 401

    assert await EmailSender("sg-key", http_client=http_client).send("anna@mail.it", "Oggetto", "x") is False


@pytest.mark.asyncio
async def test_email_network_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        delivered = await EmailSender("sg-key", http_client=client).send("anna@mail.it", "Oggetto", "x")

    assert delivered is False


@pytest.mark.asyncio
async def test_bird_channels(http_client, outbox):
    """Test SMS and WhatsApp go to their own Bird channels with the access key."""
    messenger = BirdMessenger("bird-key", "ws-9", "sms-ch", "wa-ch", http_client=http_client)

    assert await messenger.send("333 1234567", "Ciao", MessageChannel.SMS) is True
    assert await messenger.send("333 1234567", "Ciao", MessageChannel.WHATSAPP) is True

    first, second = outbox.requests
    assert str(first.url) == "https://api.bird.com/workspaces/ws-9/messages"
    assert first.headers["Authorization"] == "AccessKey bird-key"
    assert json.loads(first.content)["channelId"] == "sms-ch"
    assert json.loads(second.content)["channelId"] == "wa-ch"
    assert json.loads(second.content)["body"] == {"text": {"text": "Ciao"}}


@pytest.mark.asyncio
async def test_whatsapp_falls_back_to_sms_channel(http_client, outbox):
    messenger = BirdMessenger("bird-key", "ws-9", "sms-ch", http_client=http_client)

    await messenger.send("3331234567", "Ciao", MessageChannel.WHATSAPP)

    assert json.loads(outbox.requests[0].content)["channelId"] == "sms-ch"


@pytest.mark.asyncio
async def test_bird_not_configured(http_client, outbox):
    messenger = BirdMessenger(None, None, None, http_client=http_client)

    assert await messenger.send("3331234567", "Ciao") is False
    assert outbox.requests == []


@pytest.mark.asyncio
async def test_checkout_reminder_falls_back_to_sms():
    """Test a rejected WhatsApp reminder is retried as SMS."""
    channels = []

    def handler(request: httpx.Request) -> httpx.Response:
        channel = json.loads(request.content)["channelId"]
        channels.append(channel)
        return httpx.Response(400 if channel == "wa-ch" else 202, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = NotificationService(
            email=EmailSender(None, http_client=client),
            messenger=BirdMessenger("bird-key", "ws-9", "sms-ch", "wa-ch", http_client=client),
        )
        delivered = await service.send_checkout_reminder("Anna", "3331234567", datetime(2025, 7, 8))

    assert delivered is True
    assert channels == ["wa-ch", "sms-ch"]


def _distance_client(payload: dict, status_code: int = 200):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


@pytest.mark.asyncio
async def test_distance_lookup():
    payload = {
        "status": "OK",
        "origin_addresses": ["Bari BA, Italia"],
        "destination_addresses": ["Leporano TA, Italia"],
        "rows": [{
            "elements": [{
                "status": "OK",
                "distance": {"text": "104 km", "value": 104231},
                "duration": {"text": "1 ora 15 min", "value": 4500},
            }]
        }],
    }
    client, seen = _distance_client(payload)

    async with client:
        result = await DistanceService(api_key="maps-key", http_client=client).get_distance("Bari")

    assert result.origin == "Bari BA, Italia"
    assert result.distance_meters == 104231
    assert result.duration_seconds == 4500
    assert seen[0].url.params["key"] == "maps-key"
    assert seen[0].url.params["mode"] == "driving"
    assert seen[0].url.params["destinations"]


@pytest.mark.asyncio
async def test_distance_without_key():
    with pytest.raises(ServiceUnavailableError):
        await DistanceService(api_key="").get_distance("Bari")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,status_code",
    [
        ({"status": "REQUEST_DENIED", "error_message": "bad key"}, 200),
        ({"status": "OK", "rows": [{"elements": [{"status": "ZERO_RESULTS"}]}]}, 200),
        ({"status": "OK", "rows": []}, 200),
        ({}, 500),
    ],
)
async def test_distance_upstream_errors(payload, status_code):
    client, _ = _distance_client(payload, status_code)

    async with client:
        with pytest.raises(ExternalServiceError):
            await DistanceService(api_key="maps-key", http_client=client).get_distance("Bari")
