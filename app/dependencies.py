"""Shared FastAPI dependencies and infrastructure factories."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import Settings, get_settings
from app.repositories.fraud_flag_repository import FraudFlagRepository
from app.repositories.login_attempt_repository import LoginAttemptRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.product_repository import ProductRepository
from app.services.auth_service import AuthService
from app.services.email_relay import EmailRelay
from app.services.fraud_alert_dispatcher import FraudAlertDispatcher
from app.services.mpesa_client import MpesaClient
from app.services.notification_outbox import OutboxRelay
from app.services.two_factor_service import TwoFactorService

# ---------------------------------------------------------------------------
# Factories used by the application lifespan
# ---------------------------------------------------------------------------


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Objects stay readable after commit; background tasks run post-commit.
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


def create_redis(settings: Settings) -> Redis:
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        max_connections=settings.redis_pool_size,
    )


# ---------------------------------------------------------------------------
# Request-scoped dependencies
# ---------------------------------------------------------------------------


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; commit on success, roll back on error, always close."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_redis(request: Request) -> Redis:
    return request.app.state.redis


def get_email_relay(request: Request) -> EmailRelay:
    return request.app.state.email_relay


def get_mpesa_client(request: Request) -> MpesaClient:
    return request.app.state.mpesa_client


def get_outbox_relay(request: Request) -> OutboxRelay:
    return request.app.state.outbox_relay


RedisClient = Annotated[Redis, Depends(get_redis)]
Relay = Annotated[EmailRelay, Depends(get_email_relay)]
Mpesa = Annotated[MpesaClient, Depends(get_mpesa_client)]
Outbox = Annotated[OutboxRelay, Depends(get_outbox_relay)]


def get_two_factor_service(
    db: DBSession, relay: Relay, redis: RedisClient, settings: AppSettings
) -> TwoFactorService:
    return TwoFactorService(db, relay, redis, settings)


def get_auth_service(
    db: DBSession,
    two_factor: Annotated[TwoFactorService, Depends(get_two_factor_service)],
    settings: AppSettings,
) -> AuthService:
    return AuthService(db, two_factor, settings)


def get_fraud_alert_dispatcher(
    db: DBSession, relay: Relay, settings: AppSettings
) -> FraudAlertDispatcher:
    return FraudAlertDispatcher(db, relay, settings)


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


def get_order_repo(db: DBSession) -> OrderRepository:
    return OrderRepository(db)


def get_fraud_flag_repo(db: DBSession) -> FraudFlagRepository:
    return FraudFlagRepository(db)


def get_product_repo(db: DBSession) -> ProductRepository:
    return ProductRepository(db)


def get_login_attempt_repo(db: DBSession) -> LoginAttemptRepository:
    return LoginAttemptRepository(db)


OrderRepo = Annotated[OrderRepository, Depends(get_order_repo)]
FraudFlagRepo = Annotated[FraudFlagRepository, Depends(get_fraud_flag_repo)]
ProductRepo = Annotated[ProductRepository, Depends(get_product_repo)]
LoginAttemptRepo = Annotated[LoginAttemptRepository, Depends(get_login_attempt_repo)]
