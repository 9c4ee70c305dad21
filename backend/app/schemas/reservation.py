"""
Pydantic schemas for Reservation, its assignees and attachments.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from app.schemas.member import MemberResponse
from app.schemas.record import Record


class AttachmentResponse(Record):
    """Schema for reservation attachment response."""
    id: int
    reservation_id: int
    file_url: str
    file_name: str
    file_type: Optional[str] = None
    created_at: datetime


class ReservationResponse(Record):
    """Scalar fields of a reservation."""
    id: int
    trip_id: int
    title: str
    booking_site: Optional[str] = None
    booking_number: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    memo: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ReservationWithDetails(ReservationResponse):
    """Reservation joined with its assigned members and attachments."""
    members: List[MemberResponse] = []
    attachments: List[AttachmentResponse] = []


class ReservationForm(BaseModel):
    """Form input shared by reservation create and update.

    scheduled_at is local wall-clock time ("2026-03-01T10:00"), read in
    `timezone` or the configured default zone.
    """
    title: str
    member_ids: List[int] = []
    booking_site: Optional[str] = None
    booking_number: Optional[str] = None
    scheduled_at: Optional[str] = None
    timezone: Optional[str] = None
    memo: Optional[str] = None


class UploadedFile(BaseModel):
    """File received from the client, read fully into memory."""
    file_name: str
    content_type: Optional[str] = None
    data: bytes


class FailedUpload(BaseModel):
    """A file that was skipped during a reservation write."""
    file_name: str
    reason: str


class ReservationWriteResult(BaseModel):
    """Outcome of a reservation create or update workflow."""
    reservation_id: int
    attachments: List[AttachmentResponse] = []
    failed_uploads: List[FailedUpload] = []
