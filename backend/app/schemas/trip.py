"""
Pydantic schemas for Trip entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.schemas.record import Record


class TripBase(BaseModel):
    """Base trip schema."""
    name: str
    description: Optional[str] = None


class TripCreate(TripBase):
    """Schema for trip creation."""
    pass


class TripUpdate(TripBase):
    """Schema for trip update."""
    pass


class TripResponse(Record):
    """Schema for trip response."""
    id: int
    name: str
    description: Optional[str] = None
    share_id: str
    created_at: datetime


class TripCreatedResponse(BaseModel):
    """Created trip plus the dashboard path to redirect to."""
    trip: TripResponse
    url: str
