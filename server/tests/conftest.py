"""Test configuration and fixtures."""

import os

# Settings are read at import time, so the environment must be in place first
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["ENVIRONMENT"] = "test"
os.environ["ENABLE_WORKERS"] = "false"
for _key in ("SENDGRID_API_KEY", "BIRD_API_KEY", "GOOGLE_MAPS_API_KEY", "ADMIN_PHONE"):
    os.environ.pop(_key, None)

import json  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from villa_api.core.database import Base, get_db  # noqa: E402
from villa_api.core.security import create_access_token  # noqa: E402
from villa_api.models import *  # noqa: F403,E402 - Import all models
from villa_api.schemas.user import RegisterRequest  # noqa: E402
from villa_api.services.notification_service import (  # noqa: E402
    BirdMessenger,
    EmailSender,
    NotificationService,
    get_notification_service,
)
from villa_api.services.user_service import UserService  # noqa: E402

GUEST_PASSWORD = "vacanza2025"
ADMIN_PASSWORD = "gestione2025"


class Outbox:
    """Records the requests the notification clients send to SendGrid and Bird."""

    def __init__(self, status_code: int = 202):
        self.requests = []
        self.status_code = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    def emails(self) -> list:
        return [json.loads(r.content) for r in self.requests if r.url.host == "api.sendgrid.com"]

    def texts(self) -> list:
        return [json.loads(r.content) for r in self.requests if r.url.host == "api.bird.com"]


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def outbox():
    return Outbox()


@pytest_asyncio.fixture(scope="function")
async def http_client(outbox):
    """httpx client whose transport answers every call locally."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(outbox.handler)) as client:
        yield client


@pytest.fixture
def notifications(http_client):
    """Notification service with credentials configured and all traffic captured."""
    return NotificationService(
        email=EmailSender("sg-test-key", http_client=http_client),
        messenger=BirdMessenger(
            api_key="bird-test-key",
            workspace_id="ws-1",
            sms_channel_id="sms-channel",
            whatsapp_channel_id="wa-channel",
            http_client=http_client,
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, notifications):
    """Create the FastAPI application bound to the test database."""
    from villa_api.main import create_app

    app = create_app()

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notifications

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    from httpx import ASGITransport
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def guest_user(test_session):
    return await UserService(test_session).create_user(
        RegisterRequest(
            username="mrossi",
            password=GUEST_PASSWORD,
            email="mario.rossi@mail.it",
            full_name="Mario Rossi",
            phone="333 123 4567",
        ),
        password=GUEST_PASSWORD,
    )


@pytest_asyncio.fixture(scope="function")
async def admin_user(test_session):
    return await UserService(test_session).create_user(
        RegisterRequest(
            username="gestore",
            password=ADMIN_PASSWORD,
            email="gestore@mail.it",
            full_name="Giulia Bianchi",
        ),
        password=ADMIN_PASSWORD,
        is_admin=True,
    )


@pytest.fixture
def guest_headers(guest_user):
    return {"Authorization": f"Bearer {create_access_token(guest_user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def sample_booking_data():
    """Sample booking request for testing."""
    return {
        "startDate": "2025-07-01",
        "endDate": "2025-07-08",
        "numberOfGuests": 4,
        "notes": "Arriviamo in serata",
    }


@pytest.fixture
def sample_item_data():
    """Sample inventory item for testing."""
    return {
        "name": "Asciugamani",
        "category": "biancheria",
        "currentQuantity": 20,
        "minimumQuantity": 5,
        "unit": "pz",
    }
