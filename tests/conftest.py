"""
MedCare Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Tests run against an in-memory SQLite database through aiosqlite, so
       services execute real SQL without a PostgreSQL server. The payment
       gateway is always replaced by a fake; no test talks to Stripe.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine: Fresh schema on the in-memory database
    ├── db_session: Session used by tests to seed and inspect rows
    ├── mock_db_session: AsyncMock session for paths a real DB can't reach
    ├── fake_gateway: Records payment intents instead of calling Stripe
    ├── client: HTTPX AsyncClient bound to the app
    └── make_user / make_camp / make_registration / make_payment: seeders
"""

import os

# Must be set before medcare is imported: settings and the engine are built at import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"

from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from medcare.config import settings  # noqa: E402
from medcare.database import Base, async_session_factory, engine  # noqa: E402
from medcare.dependencies import get_payment_gateway  # noqa: E402
from medcare.models import Camp, Payment, Registration, User  # noqa: E402
from medcare.services.auth_service import auth_service  # noqa: E402
from medcare.services.payment_base import PaymentGateway  # noqa: E402


class FakeGateway(PaymentGateway):
    """In-memory gateway: hands back a predictable client secret."""

    def __init__(self):
        self.calls = []

    async def create_payment_intent(self, amount_minor: int, currency: str) -> str:
        self.calls.append((amount_minor, currency))
        return f"pi_test_{amount_minor}_secret"

    def status(self) -> str:
        return "available"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """Create every table on a fresh in-memory database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    # Closing the only connection discards the in-memory database
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """
    Session for seeding and inspecting rows.

    The API shares the same in-memory database, so seeders commit before a
    request is made, and assertions read columns (not cached ORM objects).
    """
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Mock async session for failure paths a real database won't produce.

    Usage:
        mock_db_session.execute.return_value = MagicMock(rowcount=0)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest_asyncio.fixture
async def client(db_engine, fake_gateway):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from medcare.main import app

    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(client):
    """Attach a valid session cookie for an email to the client."""

    def _sign_in(email: str) -> None:
        client.cookies.set(settings.token_cookie_name, auth_service.issue_token(email))

    return _sign_in


# ══════════════════════════════════════════════════════════════════════════
# Seeders
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    async def _make(email: str, role: Optional[str] = None, display_name: Optional[str] = None) -> User:
        user = User(uid=f"uid-{email}", email=email, role=role, display_name=display_name)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_camp(db_session):
    async def _make(
        name: str = "Free Eye Checkup",
        organizer_email: str = "organizer@example.com",
        participant_count: int = 0,
        **fields,
    ) -> Camp:
        camp = Camp(
            name=name,
            organizer_email=organizer_email,
            participant_count=participant_count,
            fees=fields.pop("fees", 10.0),
            **fields,
        )
        db_session.add(camp)
        await db_session.commit()
        return camp

    return _make


@pytest.fixture
def make_registration(db_session):
    async def _make(
        camp: Camp,
        participant_email: str = "participant@example.com",
        payment_method_id: Optional[str] = None,
        rating: Optional[int] = None,
        status: str = "Active",
    ) -> Registration:
        registration = Registration(
            camp_id=camp.id,
            participant_email=participant_email,
            payment_method_id=payment_method_id,
            rating=rating,
            status=status,
        )
        db_session.add(registration)
        await db_session.commit()
        return registration

    return _make


@pytest.fixture
def make_payment(db_session):
    async def _make(
        payer_email: str = "participant@example.com",
        payment_method_id: str = "pm_card_visa",
        amount: float = 10.0,
        camp_id=None,
    ) -> Payment:
        payment = Payment(
            payer_email=payer_email,
            payment_method_id=payment_method_id,
            amount=amount,
            camp_id=camp_id,
        )
        db_session.add(payment)
        await db_session.commit()
        return payment

    return _make


@pytest.fixture
def count_rows(db_session):
    async def _count(model) -> int:
        return await db_session.scalar(select(func.count()).select_from(model))

    return _count
