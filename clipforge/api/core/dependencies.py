from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request, status
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import redis.asyncio as redis

from clipforge.api.core.constants import BEARER_PREFIX
from clipforge.api.core.exceptions.base import ClipforgeException
from clipforge.api.core.messages import MessageCode
from clipforge.core.context import Identity
from clipforge.modules.billing.checkout import CheckoutService
from clipforge.modules.billing.webhook import PaymentWebhookProcessor
from clipforge.modules.generation.backends import GenerationBackend, build_backend
from clipforge.modules.generation.orchestrator import JobOrchestrator
from clipforge.modules.generation.service import GenerationService
from clipforge.modules.health.service import HealthService
from clipforge.modules.ledger import LedgerStore, RedisLedgerStore, SqlLedgerStore
from clipforge.modules.user.auth import IdentityVerifier
from clipforge.redis.client import get_redis_client
from clipforge.utils.settings.auth import AuthSettings
from clipforge.utils.settings.generation import GenerationSettings
from clipforge.utils.settings.ledger import LedgerSettings
from clipforge.utils.settings.stripe import StripeSettings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory created in the application lifespan."""
    return request.app.state.session_factory


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_auth_settings() -> AuthSettings:
    return AuthSettings()


def get_generation_settings() -> GenerationSettings:
    return GenerationSettings()


def get_ledger_settings() -> LedgerSettings:
    return LedgerSettings()


def get_stripe_settings() -> StripeSettings:
    return StripeSettings()


async def get_ledger_store(
    session_factory: Annotated[
        async_sessionmaker[AsyncSession], Depends(get_session_factory)
    ],
    settings: Annotated[LedgerSettings, Depends(get_ledger_settings)],
) -> LedgerStore:
    """Ledger backed by the store named in LEDGER_BACKEND."""
    if settings.LEDGER_BACKEND == "redis":
        return RedisLedgerStore(get_redis_client(settings))
    return SqlLedgerStore(session_factory)


def get_generation_backend(
    settings: Annotated[GenerationSettings, Depends(get_generation_settings)],
) -> GenerationBackend:
    return build_backend(settings)


def get_job_orchestrator(
    settings: Annotated[GenerationSettings, Depends(get_generation_settings)],
) -> JobOrchestrator:
    return JobOrchestrator.from_settings(settings)


def get_generation_service(
    ledger: Annotated[LedgerStore, Depends(get_ledger_store)],
    backend: Annotated[GenerationBackend, Depends(get_generation_backend)],
    orchestrator: Annotated[JobOrchestrator, Depends(get_job_orchestrator)],
    settings: Annotated[GenerationSettings, Depends(get_generation_settings)],
) -> GenerationService:
    return GenerationService(
        ledger=ledger,
        backend=backend,
        orchestrator=orchestrator,
        debit_policy=settings.GENERATION_DEBIT_POLICY,
    )


def get_webhook_processor(
    ledger: Annotated[LedgerStore, Depends(get_ledger_store)],
    settings: Annotated[StripeSettings, Depends(get_stripe_settings)],
) -> PaymentWebhookProcessor:
    return PaymentWebhookProcessor(ledger, settings)


def get_checkout_service(
    settings: Annotated[StripeSettings, Depends(get_stripe_settings)],
) -> CheckoutService:
    return CheckoutService(settings)


def get_identity_verifier(
    settings: Annotated[AuthSettings, Depends(get_auth_settings)],
) -> IdentityVerifier:
    return IdentityVerifier(settings)


async def get_health_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[LedgerSettings, Depends(get_ledger_settings)],
    generation_settings: Annotated[
        GenerationSettings, Depends(get_generation_settings)
    ],
) -> HealthService:
    redis_client: redis.Redis | None = None
    if settings.LEDGER_BACKEND == "redis":
        redis_client = get_redis_client(settings)
    return HealthService(db, redis_client, generation_settings)


async def get_current_identity(
    request: Request,
    verifier: Annotated[IdentityVerifier, Depends(get_identity_verifier)],
) -> Identity:
    """Verified caller identity from the ``Authorization: Bearer`` header."""
    authorization = request.headers.get("Authorization", "")
    if not authorization.startswith(BEARER_PREFIX):
        raise ClipforgeException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Missing bearer token"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise ClipforgeException(
            MessageCode.AUTH_REQUIRED,
            status.HTTP_401_UNAUTHORIZED,
            {"description": "Empty bearer token"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity = await verifier.verify(token)
    request.state.identity = identity
    structlog.contextvars.bind_contextvars(user_id=identity.user_id)
    return identity


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
LedgerStoreDep = Annotated[LedgerStore, Depends(get_ledger_store)]
GenerationServiceDep = Annotated[GenerationService, Depends(get_generation_service)]
WebhookProcessorDep = Annotated[
    PaymentWebhookProcessor, Depends(get_webhook_processor)
]
CheckoutServiceDep = Annotated[CheckoutService, Depends(get_checkout_service)]
HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]

CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
