# app/modules/realtime/__init__.py
from .router import router as realtime_router

__all__ = ["realtime_router"]
