from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clipforge.utils.settings.database import DatabaseSettings


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


_settings = DatabaseSettings()
async_engine = create_async_engine(
    _settings.DATABASE_URL_ASYNC, echo=_settings.DATABASE_ECHO, pool_pre_ping=True
)
AsyncSessionLocal = create_session_factory(async_engine)
