"""
Pydantic schemas for Member entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.models.member import DEFAULT_AVATAR_EMOJI
from app.schemas.record import Record


class MemberCreate(BaseModel):
    """Schema for adding a member."""
    name: str
    avatar_emoji: str = DEFAULT_AVATAR_EMOJI


class MemberUpdate(BaseModel):
    """Schema for member update. Color cannot be changed; a missing emoji is kept."""
    name: str
    avatar_emoji: Optional[str] = None


class MemberResponse(Record):
    """Schema for member response."""
    id: int
    trip_id: int
    name: str
    avatar_emoji: str
    color: str
    created_at: datetime
