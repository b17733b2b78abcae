"""Unit tests for background workers."""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select, update

from villa_api.core.timeutils import utcnow
from villa_api.models.booking import Booking, BookingStatus
from villa_api.models.user import UserSession
from villa_api.schemas.booking import ManualBookingRequest
from villa_api.services.auth_service import SessionService
from villa_api.services.booking_service import BookingService
from villa_api.workers.base import BaseWorker
from villa_api.workers.checkout_reminder_worker import CheckoutReminderWorker
from villa_api.workers.manager import WorkerManager
from villa_api.workers.session_cleanup_worker import SessionCleanupWorker


class RecordingNotifications:
    """Stands in for the notification service, recording reminders."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.reminders = []

    async def send_checkout_reminder(self, guest_name, phone, check_out):
        self.reminders.append((guest_name, phone, check_out))
        return self.deliver


async def _confirmed_stay(session, phone, ends_in: timedelta):
    now = utcnow()
    booking = await BookingService(session).create_manual_booking(
        ManualBookingRequest(
            guestName="Anna Verdi",
            guestEmail="anna@mail.it",
            guestPhone=phone,
            checkIn=now - timedelta(days=6),
            checkOut=now + ends_in,
            guestCount=2,
            status="confirmed",
        )
    )
    return booking.id


@pytest.mark.asyncio
async def test_checkout_reminder_worker(session_factory):
    """Test each due booking with a phone is reminded once."""
    async with session_factory() as session:
        due_id = await _confirmed_stay(session, "3331234567", timedelta(hours=12))
        no_phone_id = await _confirmed_stay(session, None, timedelta(hours=12))
        await _confirmed_stay(session, "3331234567", timedelta(days=5))

    notifications = RecordingNotifications()
    worker = CheckoutReminderWorker(
        notifications_factory=lambda: notifications,
        session_factory=session_factory,
    )

    assert await worker.process() == 1
    assert [phone for _, phone, _ in notifications.reminders] == ["3331234567"]

    # Already reminded
    assert await worker.process() == 0

    async with session_factory() as session:
        result = await session.execute(select(Booking).where(Booking.id.in_([due_id, no_phone_id])))
        reminded = {b.id: b.reminder_sent_at for b in result.scalars()}
    assert reminded[due_id] is not None
    assert reminded[no_phone_id] is None


@pytest.mark.asyncio
async def test_checkout_reminder_retried_after_failure(session_factory):
    async with session_factory() as session:
        await _confirmed_stay(session, "3331234567", timedelta(hours=12))

    notifications = RecordingNotifications(deliver=False)
    worker = CheckoutReminderWorker(notifications_factory=lambda: notifications, session_factory=session_factory)

    assert await worker.process() == 0
    assert await worker.process() == 0
    assert len(notifications.reminders) == 2


@pytest.mark.asyncio
async def test_cancelled_booking_not_reminded(session_factory):
    async with session_factory() as session:
        booking_id = await _confirmed_stay(session, "3331234567", timedelta(hours=12))
        await BookingService(session).update_status(booking_id, BookingStatus.CANCELLED)

    notifications = RecordingNotifications()
    worker = CheckoutReminderWorker(notifications_factory=lambda: notifications, session_factory=session_factory)

    assert await worker.process() == 0
    assert notifications.reminders == []


@pytest.mark.asyncio
async def test_session_cleanup_worker(session_factory, guest_user):
    async with session_factory() as session:
        sessions = SessionService(session)
        stale = await sessions.create_session(guest_user)
        await sessions.create_session(guest_user)
        await session.execute(
            update(UserSession)
            .where(UserSession.id == stale.id)
            .values(expires_at=utcnow() - timedelta(hours=1))
        )
        await session.commit()

    worker = SessionCleanupWorker(session_factory=session_factory)

    assert await worker.process() == 1
    assert await worker.process() == 0


class CountingWorker(BaseWorker):
    def __init__(self, **kwargs):
        super().__init__(name="counting", **kwargs)
        self.calls = 0
        self.ran = asyncio.Event()

    async def process(self) -> int:
        self.calls += 1
        self.ran.set()
        if self.calls == 1:
            raise RuntimeError("first iteration fails")
        return 0


@pytest.mark.asyncio
async def test_worker_start_and_stop():
    """Test a worker keeps running after a failed iteration and stops cleanly."""
    worker = CountingWorker(interval_seconds=0)

    await worker.start()
    assert worker.running is True
    await asyncio.wait_for(worker.ran.wait(), timeout=1)
    while worker.calls < 2:
        await asyncio.sleep(0)

    await worker.stop()

    assert worker.running is False
    assert worker.calls >= 2


def test_worker_manager_registry():
    manager = WorkerManager()

    assert set(manager.get_worker_status()) == {"session_cleanup", "checkout_reminder"}
    assert manager.get_worker("checkout_reminder").interval_seconds == 6 * 3600
    assert not any(manager.get_worker_status().values())
