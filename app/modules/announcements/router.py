# app/modules/announcements/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_session, require_capabilities
from app.core.auth.session import Capability, SessionContext
from .service import AnnouncementService
from .schemas import AnnouncementRequest, AnnouncementResponse, ActiveAnnouncementResponse

router = APIRouter(prefix="/announcements", tags=["Announcements"])

manage_announcements = require_capabilities([Capability.MANAGE_ANNOUNCEMENTS])

@router.get("/active", response_model=ActiveAnnouncementResponse)
async def get_active_announcement(
    session: SessionContext = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    return ActiveAnnouncementResponse(announcement=AnnouncementService(db).get_active())

@router.post("", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    data: AnnouncementRequest,
    session: SessionContext = Depends(manage_announcements),
    db: Session = Depends(get_db)
):
    """Publish an announcement for `expires_in_hours` (default 24)"""
    return AnnouncementService(db).create(session, data)

@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    data: AnnouncementRequest,
    session: SessionContext = Depends(manage_announcements),
    db: Session = Depends(get_db)
):
    return AnnouncementService(db).update(announcement_id, data)

@router.delete("/{announcement_id}")
async def delete_announcement(
    announcement_id: int,
    session: SessionContext = Depends(manage_announcements),
    db: Session = Depends(get_db)
):
    AnnouncementService(db).delete(announcement_id)
    return {"success": True, "message": "Announcement deleted successfully"}
