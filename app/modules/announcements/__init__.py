# app/modules/announcements/__init__.py
from .router import router as announcements_router
from .service import AnnouncementService
from .repository import AnnouncementRepository

__all__ = [
    "announcements_router",
    "AnnouncementService",
    "AnnouncementRepository"
]
