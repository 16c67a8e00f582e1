from fastapi import APIRouter

from clipforge.api.account.router import router as account_router
from clipforge.api.generation.router import router as generation_router
from clipforge.api.health.router import router as health_router
from clipforge.api.payments.router import router as payments_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(generation_router)
api_router.include_router(account_router)
api_router.include_router(payments_router)
