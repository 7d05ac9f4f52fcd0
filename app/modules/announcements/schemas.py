from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

class AnnouncementRequest(BaseModel):
    message: str = Field(..., description="Text shown on every dashboard")
    expires_in_hours: int = Field(24, ge=1, description="Hours until it disappears")

    @field_validator('message')
    @classmethod
    def message_not_blank(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError('Announcement message cannot be empty')
        return v

class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    message: str
    expires_at: datetime
    created_at: datetime
    created_by: Optional[int] = None

class ActiveAnnouncementResponse(BaseModel):
    success: bool = True
    announcement: Optional[AnnouncementResponse] = None
