"""Global test configuration and fixtures for Clipforge API."""

import time
from collections.abc import AsyncGenerator
from typing import Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from clipforge.api.core.constants import JWT_SECRET_ALGORITHM
from clipforge.api.core.dependencies import (
    get_auth_settings,
    get_generation_backend,
    get_generation_settings,
    get_job_orchestrator,
    get_ledger_settings,
    get_stripe_settings,
)
from clipforge.database.connection import create_session_factory
from clipforge.database.models import Account, Base
from clipforge.modules.generation.orchestrator import JobOrchestrator
from clipforge.modules.ledger import SqlLedgerStore
from clipforge.utils.settings.auth import AuthSettings
from clipforge.utils.settings.generation import GenerationSettings
from clipforge.utils.settings.ledger import LedgerSettings
from clipforge.utils.settings.stripe import StripeSettings

from tests.factories import AccountFactory
from tests.fakes import FakeClock, ScriptedImmediateBackend
from tests.utils.constants import (
    TEST_AUDIENCE,
    TEST_JWT_SECRET,
    TEST_USER_EMAIL,
    TEST_USER_ID,
    TEST_WEBHOOK_SECRET,
)


@pytest.fixture
def account_factory():
    return AccountFactory


# Database Fixtures
@pytest_asyncio.fixture
async def async_engine(tmp_path):
    """Per-test SQLite database with the ORM schema created on it."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'clipforge.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger(session_factory) -> SqlLedgerStore:
    return SqlLedgerStore(session_factory)


@pytest.fixture
def read_balance(session_factory) -> Callable:
    """Read a stored balance without creating the account."""

    async def _read(user_id: str) -> int | None:
        async with session_factory() as session:
            account = await session.get(Account, user_id)
            return account.credits if account else None

    return _read


@pytest_asyncio.fixture
async def test_account(db_session: AsyncSession, account_factory) -> Account:
    """Account for the default test identity holding 3 credits."""
    return await account_factory.create_async(
        db_session, user_id=TEST_USER_ID, email=TEST_USER_EMAIL, credits=3
    )


# Settings Fixtures
@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(
        AUTH_JWT_SECRET=TEST_JWT_SECRET,
        AUTH_AUDIENCE=TEST_AUDIENCE,
        AUTH_DOMAIN="",
    )


@pytest.fixture
def stripe_settings() -> StripeSettings:
    return StripeSettings(
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET=TEST_WEBHOOK_SECRET,
        STRIPE_WEBHOOK_TOLERANCE=300,
        STRIPE_SUCCESS_URL="https://app.clipforge.test/payment/success",
        STRIPE_CANCEL_URL="https://app.clipforge.test/payment/cancel",
    )


@pytest.fixture
def generation_settings() -> GenerationSettings:
    return GenerationSettings(
        GENERATION_BACKEND="replicate",
        REPLICATE_API_KEY="r8_test_key",
        GENERATION_POLL_INTERVAL_SECONDS=1.0,
        GENERATION_TIMEOUT_SECONDS=30.0,
        GENERATION_STATUS_RETRIES=3,
    )


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(LEDGER_BACKEND="sql")


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def orchestrator(fake_clock: FakeClock) -> JobOrchestrator:
    return JobOrchestrator(
        poll_interval=1.0,
        timeout=30.0,
        max_status_retries=3,
        sleep=fake_clock.sleep,
        clock=fake_clock,
    )


@pytest.fixture
def generation_backend() -> ScriptedImmediateBackend:
    return ScriptedImmediateBackend()


@pytest_asyncio.fixture
async def app(
    session_factory,
    auth_settings,
    stripe_settings,
    generation_settings,
    ledger_settings,
    orchestrator,
    generation_backend,
):
    """FastAPI application wired to the test database and fakes."""
    from clipforge.main import app

    app.state.session_factory = session_factory
    app.dependency_overrides.update(
        {
            get_auth_settings: lambda: auth_settings,
            get_stripe_settings: lambda: stripe_settings,
            get_generation_settings: lambda: generation_settings,
            get_ledger_settings: lambda: ledger_settings,
            get_job_orchestrator: lambda: orchestrator,
            get_generation_backend: lambda: generation_backend,
        }
    )

    async with LifespanManager(app):
        yield app

    app.dependency_overrides.clear()
    app.state.session_factory = None


# JWT Token Fixtures
@pytest.fixture()
def jwt_token_factory() -> Callable[..., str]:
    """Factory for creating HS256 tokens accepted by the test settings."""

    def create_token(
        user_id: str = TEST_USER_ID,
        email: str | None = TEST_USER_EMAIL,
        expires_in: int = 3600,
        audience: str = TEST_AUDIENCE,
        secret: str = TEST_JWT_SECRET,
    ) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id,
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
        }
        if email:
            payload["email"] = email
        return jwt.encode(payload, secret, algorithm=JWT_SECRET_ALGORITHM)

    return create_token


@pytest.fixture
def user_token(jwt_token_factory) -> str:
    return jwt_token_factory()


# HTTP Client Fixtures
@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-clipforge-api",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def authorized_client(
    app: FastAPI, user_token: str
) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client with JWT authorization headers."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-clipforge-api",
        headers={"Authorization": f"Bearer {user_token}"},
    ) as ac:
        yield ac
