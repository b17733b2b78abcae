"""Unit tests for user, session and authentication services."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from villa_api.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateAccountError,
    NotFoundError,
    ValidationError,
)
from villa_api.core.security import create_password_reset_token, verify_password
from villa_api.core.timeutils import utcnow
from villa_api.models.user import UserSession
from villa_api.schemas.booking import CreateBookingRequest
from villa_api.schemas.user import ManualUserRequest, RegisterRequest, UpdateUserRequest
from villa_api.services.auth_service import AuthService, SessionService
from villa_api.services.booking_service import BookingService
from villa_api.services.user_service import UserService

GUEST_PASSWORD = "vacanza2025"


@pytest.mark.asyncio
async def test_create_user_hashes_password(test_session, guest_user):
    assert guest_user.password != GUEST_PASSWORD
    assert verify_password(GUEST_PASSWORD, guest_user.password)
    assert guest_user.is_admin is False


@pytest.mark.asyncio
async def test_duplicate_username_and_email(test_session, guest_user):
    """Test registration is refused when the username or email is taken."""
    service = UserService(test_session)

    with pytest.raises(DuplicateAccountError) as exc_info:
        await service.create_user(
            RegisterRequest(username="mrossi", password="altrapass", email="altro@mail.it"),
            password="altrapass",
        )
    assert exc_info.value.problem_details["field"] == "username"

    with pytest.raises(DuplicateAccountError) as exc_info:
        await service.create_user(
            RegisterRequest(username="mario2", password="altrapass", email="Mario.Rossi@mail.it"),
            password="altrapass",
        )
    assert exc_info.value.problem_details["field"] == "email"


@pytest.mark.asyncio
async def test_manual_user_generates_password(test_session):
    user, temporary_password = await UserService(test_session).create_manual_user(
        ManualUserRequest(username="ospite1", email="ospite1@mail.it", fullName="Ospite Uno")
    )

    assert temporary_password
    assert verify_password(temporary_password, user.password)


@pytest.mark.asyncio
async def test_manual_user_with_password(test_session):
    user, temporary_password = await UserService(test_session).create_manual_user(
        ManualUserRequest(username="ospite2", email="ospite2@mail.it", password="scelta123")
    )

    assert temporary_password is None
    assert verify_password("scelta123", user.password)


@pytest.mark.asyncio
async def test_update_user(test_session, guest_user):
    user = await UserService(test_session).update_user(
        guest_user.id, UpdateUserRequest(notes="Cliente abituale", isAdmin=True)
    )

    assert user.notes == "Cliente abituale"
    assert user.is_admin is True
    assert user.full_name == "Mario Rossi"


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(test_session, admin_user):
    with pytest.raises(ValidationError):
        await UserService(test_session).delete_user(admin_user.id, acting_user_id=admin_user.id)


@pytest.mark.asyncio
async def test_delete_user_keeps_bookings(test_session, guest_user, admin_user):
    """Test deleting an account detaches its bookings instead of removing them."""
    guest_id = guest_user.id
    booking = await BookingService(test_session).create_booking(
        guest_user,
        CreateBookingRequest(startDate="2025-07-01", endDate="2025-07-05", numberOfGuests=2),
    )

    await UserService(test_session).delete_user(guest_id, acting_user_id=admin_user.id)

    assert await UserService(test_session).get_user_by_id(guest_id) is None
    kept = await BookingService(test_session).get_booking_by_id(booking.id)
    assert kept is not None
    assert kept.user_id is None
    assert kept.guest_email == "mario.rossi@mail.it"


@pytest.mark.asyncio
async def test_delete_missing_user(test_session, admin_user):
    with pytest.raises(NotFoundError):
        await UserService(test_session).delete_user(999, acting_user_id=admin_user.id)


@pytest.mark.asyncio
async def test_session_lifecycle(test_session, guest_user):
    """Test a session resolves to its user until it expires."""
    service = SessionService(test_session)
    session = await service.create_session(guest_user)

    assert (await service.get_user_for_token(session.token)).id == guest_user.id
    assert await service.get_user_for_token("sconosciuto") is None

    await test_session.execute(
        update(UserSession)
        .where(UserSession.id == session.id)
        .values(expires_at=utcnow() - timedelta(minutes=1))
    )
    await test_session.commit()

    assert await service.get_user_for_token(session.token) is None


@pytest.mark.asyncio
async def test_purge_expired_sessions(test_session, guest_user):
    service = SessionService(test_session)
    stale = await service.create_session(guest_user)
    await service.create_session(guest_user)
    await test_session.execute(
        update(UserSession)
        .where(UserSession.id == stale.id)
        .values(expires_at=utcnow() - timedelta(days=1))
    )
    await test_session.commit()

    assert await service.purge_expired() == 1
    assert await service.count_active() == 1


@pytest.mark.asyncio
async def test_login(test_session, guest_user, notifications):
    auth = AuthService(test_session, notifications)

    user, session, token = await auth.login("mrossi", GUEST_PASSWORD)

    assert user.id == guest_user.id
    assert session.token
    assert token.count(".") == 2

    with pytest.raises(AuthenticationError):
        await auth.login("mrossi", "sbagliata")
    with pytest.raises(AuthenticationError):
        await auth.login("nessuno", GUEST_PASSWORD)


@pytest.mark.asyncio
async def test_register_sends_welcome(test_session, notifications, outbox):
    """Test registration welcomes the guest by email and WhatsApp and alerts the host."""
    user, session = await AuthService(test_session, notifications).register(
        RegisterRequest(
            username="lbianchi",
            password="segreta1",
            email="laura@mail.it",
            fullName="Laura Bianchi",
            phone="+39 340 000 1111",
        )
    )

    assert session.user_id == user.id
    recipients = [e["personalizations"][0]["to"][0]["email"] for e in outbox.emails()]
    assert "laura@mail.it" in recipients
    assert len(recipients) == 2
    assert outbox.texts()[0]["receiver"]["contact"]["identifierValue"] == "+393400001111"


@pytest.mark.asyncio
async def test_reset_password_with_token(test_session, guest_user, notifications):
    auth = AuthService(test_session, notifications)
    token = create_password_reset_token(guest_user)

    await auth.reset_password(token, "nuovapass")

    assert await UserService(test_session).authenticate("mrossi", "nuovapass") is not None

    with pytest.raises(ValidationError):
        await auth.reset_password("non-un-token", "nuovapass")


@pytest.mark.asyncio
async def test_request_password_reset_unknown_email_is_silent(test_session, notifications, outbox):
    await AuthService(test_session, notifications).request_password_reset("nessuno@mail.it")

    assert outbox.requests == []


@pytest.mark.asyncio
async def test_reset_password_direct_rules(test_session, guest_user, admin_user, notifications):
    """Test users may reset only their own password while admins may reset any."""
    auth = AuthService(test_session, notifications)

    with pytest.raises(AuthorizationError):
        await auth.reset_password_direct(guest_user, "gestore@mail.it", "rubata123")

    await auth.reset_password_direct(guest_user, "mario.rossi@mail.it", "mia-nuova")
    await auth.reset_password_direct(admin_user, "mario.rossi@mail.it", "dall-admin")

    assert await UserService(test_session).authenticate("mrossi", "dall-admin") is not None

    with pytest.raises(NotFoundError):
        await auth.reset_password_direct(admin_user, "fantasma@mail.it", "qualcosa")
