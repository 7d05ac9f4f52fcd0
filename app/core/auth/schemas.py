# app/core/auth/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

class LoginRequest(BaseModel):
    """Register-or-login form"""
    character_name: str = Field(..., min_length=1, description="In-game character name")
    discord_id: str = Field(..., min_length=1, description="Discord user id")
    verification_key: str = Field(..., min_length=1, description="Shop verification key")
    remember_me: bool = Field(False, description="Keep the session in a cookie for 7 days")

    @field_validator('character_name', 'discord_id', 'verification_key')
    @classmethod
    def strip_value(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError('Field cannot be blank')
        return v

class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    character_name: str
    discord_id: str
    is_blocked: bool
    block_reason: Optional[str] = None
    blocked_at: Optional[datetime] = None
    created_at: datetime

class OwnerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    character_name: str
    discord_id: str
    created_at: datetime

class SessionResponse(BaseModel):
    kind: str
    employee: EmployeeResponse
    owner: Optional[OwnerResponse] = None
    capabilities: List[str]

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    registered: bool = False
    session: SessionResponse
