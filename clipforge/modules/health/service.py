import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from clipforge.api.core.exceptions.base import ConfigurationError
from clipforge.modules.generation.backends import build_backend
from clipforge.utils.logger import get_logger
from clipforge.utils.settings.generation import GenerationSettings

logger = get_logger(__name__)


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Literal["healthy", "unhealthy", "degraded"]
    connected: bool
    details: dict
    error: str | None = None


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Literal["healthy", "degraded", "unhealthy"]
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """Checks for the stores the ledger uses and the generation backend config.

    Redis is only checked when it is passed in, i.e. when it backs the ledger.
    The generation backend check is configuration only; it never calls the
    provider.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis_client: redis.Redis | None = None,
        generation_settings: GenerationSettings | None = None,
    ):
        self.db = db
        self.redis = redis_client
        self.generation_settings = generation_settings

    async def check_database_health(self) -> HealthCheckResult:
        try:
            result = await self.db.execute(text("SELECT 1"))
            return HealthCheckResult(
                service="database",
                status="healthy",
                connected=True,
                details={"test_query_result": result.scalar()},
            )
        except Exception as e:
            logger.error("Database health check error", error=str(e))
            return HealthCheckResult(
                service="database",
                status="unhealthy",
                connected=False,
                details={},
                error=str(e),
            )

    async def check_redis_health(self) -> HealthCheckResult:
        try:
            await self.redis.ping()
            return HealthCheckResult(
                service="redis",
                status="healthy",
                connected=True,
                details={},
            )
        except Exception as e:
            logger.error("Redis health check error", error=str(e))
            return HealthCheckResult(
                service="redis",
                status="unhealthy",
                connected=False,
                details={},
                error=str(e),
            )

    def check_generation_backend(self) -> HealthCheckResult:
        try:
            backend = build_backend(self.generation_settings)
        except ConfigurationError as e:
            return HealthCheckResult(
                service="generation",
                status="unhealthy",
                connected=False,
                details={},
                error=e.details.get("description"),
            )

        if not backend.api_key:
            return HealthCheckResult(
                service="generation",
                status="degraded",
                connected=False,
                details={"backend": backend.name},
                error="Provider API key is not configured",
            )

        return HealthCheckResult(
            service="generation",
            status="healthy",
            connected=True,
            details={"backend": backend.name, "shape": backend.shape.value},
        )

    async def run_all_checks(self) -> OverallHealthStatus:
        """Run all health checks in parallel and return overall status."""
        checks = [self.check_database_health()]
        if self.redis is not None:
            checks.append(self.check_redis_health())

        results = list(await asyncio.gather(*checks))
        if self.generation_settings is not None:
            results.append(self.check_generation_backend())

        overall_status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
        for result in results:
            if result.status == "unhealthy":
                overall_status = "unhealthy"
            elif result.status == "degraded" and overall_status == "healthy":
                overall_status = "degraded"

        return OverallHealthStatus(
            status=overall_status,
            services={result.service: result for result in results},
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
