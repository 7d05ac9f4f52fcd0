# app/modules/announcements/service.py
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth.session import SessionContext
from app.core.exceptions import NotFoundError, PersistenceError
from app.shared.time_utils import utcnow
from .repository import AnnouncementRepository
from .schemas import AnnouncementRequest, AnnouncementResponse

logger = logging.getLogger(__name__)

class AnnouncementService:
    """Owner announcements shown on every dashboard until they expire"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = AnnouncementRepository(db)

    def get_active(self) -> Optional[AnnouncementResponse]:
        announcement = self.repository.get_active(utcnow())
        return AnnouncementResponse.model_validate(announcement) if announcement else None

    def create(self, session: SessionContext, data: AnnouncementRequest) -> AnnouncementResponse:
        try:
            announcement = self.repository.create(
                message=data.message,
                expires_at=utcnow() + timedelta(hours=data.expires_in_hours),
                created_by=session.owner.id
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create announcement: {e}", exc_info=True)
            raise PersistenceError("Failed to create announcement") from e

        logger.info(f"📢 Announcement {announcement.id} created, expires {announcement.expires_at}")
        return AnnouncementResponse.model_validate(announcement)

    def update(self, announcement_id: int, data: AnnouncementRequest) -> AnnouncementResponse:
        """New message; the expiry is measured again from now"""
        announcement = self._get(announcement_id)
        try:
            announcement = self.repository.update(
                announcement,
                message=data.message,
                expires_at=utcnow() + timedelta(hours=data.expires_in_hours)
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update announcement {announcement_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to update announcement") from e

        return AnnouncementResponse.model_validate(announcement)

    def delete(self, announcement_id: int) -> None:
        announcement = self._get(announcement_id)
        try:
            self.repository.delete(announcement)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete announcement {announcement_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to delete announcement") from e

        logger.info(f"🗑️ Announcement {announcement_id} deleted")

    def _get(self, announcement_id: int):
        announcement = self.repository.get_by_id(announcement_id)
        if not announcement:
            raise NotFoundError(f"Announcement {announcement_id} not found")
        return announcement
