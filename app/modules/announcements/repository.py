# app/modules/announcements/repository.py
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from app.shared.database.models import Announcement

class AnnouncementRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_active(self, now: datetime) -> Optional[Announcement]:
        """Most recent announcement that has not expired yet"""
        return self.db.query(Announcement).filter(
            Announcement.expires_at > now
        ).order_by(desc(Announcement.created_at), desc(Announcement.id)).first()

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        return self.db.query(Announcement).filter(Announcement.id == announcement_id).first()

    def create(self, message: str, expires_at: datetime, created_by: int) -> Announcement:
        announcement = Announcement(message=message, expires_at=expires_at, created_by=created_by)
        self.db.add(announcement)
        self.db.commit()
        self.db.refresh(announcement)
        return announcement

    def update(self, announcement: Announcement, message: str, expires_at: datetime) -> Announcement:
        announcement.message = message
        announcement.expires_at = expires_at
        self.db.commit()
        self.db.refresh(announcement)
        return announcement

    def delete(self, announcement: Announcement) -> None:
        self.db.delete(announcement)
        self.db.commit()
