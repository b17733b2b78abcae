"""Unit tests for promotions, the newsletter and dashboard statistics."""

from datetime import timedelta

import pytest

from villa_api.core.exceptions import ConflictError, ValidationError
from villa_api.core.timeutils import utcnow
from villa_api.schemas.marketing import CreatePromotionRequest, UpdatePromotionRequest
from villa_api.schemas.messaging import CreateContactMessageRequest
from villa_api.services.message_service import ContactService
from villa_api.services.newsletter_service import NewsletterService
from villa_api.services.promotion_service import PromotionService
from villa_api.services.stats_service import StatsService


def _promotion(code: str = "estate25", days_from: int = -1, days_to: int = 30, **overrides):
    now = utcnow()
    data = {
        "code": code,
        "title": "Sconto estate",
        "discountPercent": 15,
        "validFrom": now + timedelta(days=days_from),
        "validTo": now + timedelta(days=days_to),
    }
    data.update(overrides)
    return CreatePromotionRequest(**data)


@pytest.mark.asyncio
async def test_create_promotion_uppercases_code(test_session):
    promotion = await PromotionService(test_session).create_promotion(_promotion())

    assert promotion.code == "ESTATE25"
    assert promotion.is_active is True


@pytest.mark.asyncio
async def test_duplicate_promotion_code(test_session):
    service = PromotionService(test_session)
    await service.create_promotion(_promotion())

    with pytest.raises(ConflictError):
        await service.create_promotion(_promotion(code="ESTATE25"))


@pytest.mark.asyncio
async def test_promotion_window_must_be_ordered(test_session):
    service = PromotionService(test_session)

    with pytest.raises(ValidationError):
        await service.create_promotion(_promotion(days_from=10, days_to=1))

    promotion = await service.create_promotion(_promotion())
    with pytest.raises(ValidationError):
        await service.update_promotion(
            promotion.id,
            UpdatePromotionRequest(validTo=promotion.valid_from - timedelta(days=1)),
        )


@pytest.mark.asyncio
async def test_current_promotions(test_session):
    """Test only active promotions running now are public."""
    service = PromotionService(test_session)
    await service.create_promotion(_promotion("ORA"))
    await service.create_promotion(_promotion("FUTURA", days_from=5, days_to=10))
    await service.create_promotion(_promotion("SCADUTA", days_from=-10, days_to=-2))
    await service.create_promotion(_promotion("SPENTA", isActive=False))

    assert [p.code for p in await service.list_current()] == ["ORA"]
    assert (await service.get_promotion_by_code("ora")).code == "ORA"
    assert await service.get_promotion_by_code("futura") is None
    assert (await service.get_promotion_by_code("futura", only_current=False)).code == "FUTURA"
    assert len(await service.list_all()) == 4


@pytest.mark.asyncio
async def test_subscribe_and_unsubscribe(test_session):
    service = NewsletterService(test_session)

    subscriber = await service.subscribe("Chiara@mail.it", "Chiara")
    assert subscriber.email == "chiara@mail.it"
    assert await service.count_active() == 1

    assert await service.unsubscribe("chiara@mail.it") is True
    assert await service.unsubscribe("chiara@mail.it") is True
    assert await service.unsubscribe("mai-iscritto@mail.it") is False
    assert await service.count_active() == 0

    again = await service.subscribe("chiara@mail.it")
    assert again.id == subscriber.id
    assert again.is_active is True
    assert again.first_name == "Chiara"


@pytest.mark.asyncio
async def test_send_campaign_personalises_content(test_session, notifications, outbox):
    """Test each active subscriber receives the campaign with placeholders filled in."""
    service = NewsletterService(test_session, notifications)
    await service.subscribe("chiara@mail.it", "Chiara")
    await service.subscribe("paolo@mail.it")
    await service.subscribe("via@mail.it")
    await service.unsubscribe("via@mail.it")

    sent, failed, total = await service.send_campaign("Offerte", "<p>Ciao {{name}} ({{email}})</p>")

    assert (sent, failed, total) == (2, 0, 2)
    bodies = sorted(e["content"][0]["value"] for e in outbox.emails())
    assert bodies == ["<p>Ciao Chiara (chiara@mail.it)</p>", "<p>Ciao paolo (paolo@mail.it)</p>"]
    assert all(e["from"]["email"].startswith("newsletter@") for e in outbox.emails())


@pytest.mark.asyncio
async def test_send_campaign_counts_failures(test_session, notifications, outbox):
    outbox.status_code = 400
    service = NewsletterService(test_session, notifications)
    await service.subscribe("chiara@mail.it")

    assert await service.send_campaign("Offerte", "Ciao") == (0, 1, 1)


@pytest.mark.asyncio
async def test_admin_stats(test_session, guest_user, admin_user):
    await ContactService(test_session).create_message(
        CreateContactMessageRequest(name="Luca", email="luca@mail.it", message="Info")
    )
    await NewsletterService(test_session).subscribe("chiara@mail.it")

    stats = await StatsService(test_session).get_admin_stats()

    assert stats.total_users == 2
    assert stats.total_bookings == 0
    assert stats.unread_messages == 1
    assert stats.subscribers == 1
    assert stats.total_revenue == 0
