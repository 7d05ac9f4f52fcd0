# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.config.settings import settings

from app.modules.sales import sales_router, catalog_router
from app.modules.owner import owner_router
from app.modules.announcements import announcements_router
from app.modules.realtime import realtime_router

# Main router of API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

# Mechanic side: /api/v1/vendor/...
api_router.include_router(sales_router, prefix="/vendor")
api_router.include_router(catalog_router, prefix="/vendor")

api_router.include_router(owner_router)
api_router.include_router(announcements_router)
api_router.include_router(realtime_router)

# ==================== ROOT ENDPOINTS ====================

@api_router.get("/")
async def api_root():
    return {
        "message": f"{settings.app_name} v1",
        "version": settings.version,
        "status": "active",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "sales": "/api/v1/vendor/sales",
            "catalog": "/api/v1/vendor/catalog",
            "owner": "/api/v1/owner",
            "announcements": "/api/v1/announcements",
            "realtime": "/api/v1/realtime/ws"
        }
    }

@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "discord_webhook": "configured" if settings.discord_webhook_url else "missing"
    }
