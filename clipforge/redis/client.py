"""Shared Redis connection pool for the Redis ledger."""

import redis.asyncio as redis

from clipforge.utils.logger import get_logger
from clipforge.utils.settings.ledger import LedgerSettings

logger = get_logger(__name__)

# One pool per process, created on the first request that needs Redis
_ledger_pool: redis.ConnectionPool | None = None


def _get_pool(settings: LedgerSettings) -> redis.ConnectionPool:
    global _ledger_pool
    if _ledger_pool is None:
        _ledger_pool = redis.ConnectionPool.from_url(
            settings.LEDGER_REDIS_URL,
            max_connections=settings.LEDGER_REDIS_MAX_CONNECTIONS,
            decode_responses=True,
        )
        logger.info(
            "Ledger Redis pool created",
            max_connections=settings.LEDGER_REDIS_MAX_CONNECTIONS,
        )
    return _ledger_pool


def get_redis_client(settings: LedgerSettings) -> redis.Redis:
    """Client on the ledger pool; cheap to create per request."""
    return redis.Redis(connection_pool=_get_pool(settings))


async def close_redis_pool() -> None:
    """Drop the ledger pool on application shutdown."""
    global _ledger_pool
    if _ledger_pool is not None:
        await _ledger_pool.disconnect()
        _ledger_pool = None
