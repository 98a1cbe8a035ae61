from fastapi import APIRouter

from artmarket.api.routes import commissions, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(commissions.router, prefix="/commissions", tags=["commissions"])
