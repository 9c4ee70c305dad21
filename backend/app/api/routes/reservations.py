"""
Reservation routes. Create and update take multipart form data with files.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import List, Optional
from app.api.dependencies import get_dashboard
from app.core.config import settings
from app.schemas.dashboard import ReservationWriteResponse, TripAggregate
from app.schemas.reservation import ReservationForm, UploadedFile
from app.services.dashboard import TripDashboard

router = APIRouter(prefix="/trips/{share_id}/reservations", tags=["reservations"])


def reservation_form(
    title: str = Form(""),
    member_ids: List[int] = Form([]),
    booking_site: Optional[str] = Form(None),
    booking_number: Optional[str] = Form(None),
    scheduled_at: Optional[str] = Form(None),
    timezone: Optional[str] = Form(None),
    memo: Optional[str] = Form(None)
) -> ReservationForm:
    """Collect the reservation form fields from multipart data."""
    return ReservationForm(
        title=title,
        member_ids=member_ids,
        booking_site=booking_site,
        booking_number=booking_number,
        scheduled_at=scheduled_at,
        timezone=timezone,
        memo=memo
    )


async def read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedFile]:
    """Read uploaded files into memory, in the order they were sent.

    At most MAX_UPLOAD_SIZE + 1 bytes are read per file; anything longer
    is rejected by the size check in the upload workflow.
    """
    uploaded = []
    for file in files or []:
        uploaded.append(UploadedFile(
            file_name=file.filename or "file",
            content_type=file.content_type,
            data=await file.read(settings.MAX_UPLOAD_SIZE + 1)
        ))
    return uploaded


@router.post("", response_model=ReservationWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    form: ReservationForm = Depends(reservation_form),
    files: Optional[List[UploadFile]] = File(None),
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Create a reservation with assignees and evidence files."""
    result = dashboard.create_reservation(form, await read_uploads(files))
    return ReservationWriteResponse(
        reservation_id=result.reservation_id,
        dashboard=dashboard.aggregate,
        failed_uploads=result.failed_uploads
    )


@router.put("/{reservation_id}", response_model=ReservationWriteResponse)
async def update_reservation(
    reservation_id: int,
    form: ReservationForm = Depends(reservation_form),
    removed_attachment_ids: List[int] = Form([]),
    files: Optional[List[UploadFile]] = File(None),
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Update a reservation, its assignees and attachments."""
    result = dashboard.update_reservation(
        reservation_id, form, await read_uploads(files), removed_attachment_ids
    )
    return ReservationWriteResponse(
        reservation_id=result.reservation_id,
        dashboard=dashboard.aggregate,
        failed_uploads=result.failed_uploads
    )


@router.delete("/{reservation_id}", response_model=TripAggregate)
async def delete_reservation(
    reservation_id: int,
    confirm: bool = Query(False),
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Delete a reservation together with its assignments and attachments."""
    dashboard.delete_reservation(reservation_id, confirmed=confirm)
    return dashboard.aggregate
