import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clipforge.api.core.exceptions.base import register_exception_handlers
from clipforge.api.core.middleware.logging import logging_middleware
from clipforge.api.core.middleware.security import (
    SecurityHeadersMiddleware,
    PayloadSizeMiddleware,
)
from clipforge.api.router import api_router
from clipforge.database.connection import AsyncSessionLocal
from clipforge.modules.generation.service import drain_inflight_jobs
from clipforge.redis.client import close_redis_pool
from clipforge.utils.settings.app import AppSettings
from clipforge.utils.logger import setup_logging


app_settings = AppSettings()
is_production = app_settings.is_production


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger = setup_logging(is_production, level=app_settings.LOG_LEVEL)
    app_settings.validate_prod()
    logger.info("Starting Clipforge API...")

    # Tests install their own factory before startup
    if getattr(app.state, "session_factory", None) is None:
        app.state.session_factory = AsyncSessionLocal
    logger.info("Database session factory added to app state")

    yield

    logger.info("Shutting down Clipforge API...")
    abandoned = await drain_inflight_jobs(app_settings.SHUTDOWN_GRACE_SECONDS)
    if abandoned:
        logger.warning("Generation jobs still running at shutdown", count=abandoned)
    await close_redis_pool()


app = FastAPI(
    title="Clipforge API",
    description="Credit-gated AI video generation",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
app.add_middleware(PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "clipforge.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "clipforge.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
