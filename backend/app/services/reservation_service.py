"""
Reservation service: the create, update and delete workflows.

Each workflow runs its steps strictly in order and commits every step on
its own. There is no compensating rollback: when a later step fails, the
earlier steps stay written and the WriteFailure names the reservation so
the caller can reload and show what was saved. File uploads are best
effort; a file that cannot be stored is reported in the result and the
workflow carries on.
"""
import logging
import os
import random
import time
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.errors import ErrorCode, NotFoundError, UploadFailure, ValidationError
from app.core.storage import BlobStore
from app.core.utils import (
    FILE_SUFFIX_LENGTH, clean_text, local_to_utc, random_token, require_text, utcnow
)
from app.db.session import write_transaction
from app.models.member import Member
from app.models.reservation import Reservation, ReservationAttachment, ReservationMember
from app.schemas.reservation import (
    AttachmentResponse, FailedUpload, ReservationForm, ReservationWriteResult, UploadedFile
)

logger = logging.getLogger(__name__)


def build_storage_path(
    trip_id: int,
    reservation_id: int,
    file_name: str,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None
) -> str:
    """Blob path {trip_id}/{reservation_id}/{unix_millis}-{suffix}.{ext}."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stem = f"{now_ms}-{random_token(FILE_SUFFIX_LENGTH, rng)}"
    ext = os.path.splitext(file_name)[1]
    return f"{trip_id}/{reservation_id}/{stem}{ext}"


def _content_type_allowed(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    for allowed in settings.ALLOWED_UPLOAD_TYPES:
        if allowed.endswith("/*"):
            if content_type.startswith(allowed[:-1]):
                return True
        elif content_type == allowed:
            return True
    return False


def check_upload(file: UploadedFile) -> None:
    """Raise UploadFailure for files the evidence picker would not accept."""
    if not _content_type_allowed(file.content_type):
        raise UploadFailure(f"Unsupported file type: {file.content_type}", file.file_name)
    if len(file.data) > settings.MAX_UPLOAD_SIZE:
        raise UploadFailure(
            f"File exceeds {settings.MAX_UPLOAD_SIZE} bytes",
            file.file_name
        )


def upload_files(
    trip_id: int,
    reservation_id: int,
    files: Iterable[UploadedFile],
    db: Session,
    blobs: BlobStore
) -> Tuple[List[AttachmentResponse], List[FailedUpload]]:
    """Store files one at a time and record an attachment row for each.

    A file that fails validation, storage or the attachment insert is
    logged and reported; the files before it stay stored.
    """
    attachments: List[AttachmentResponse] = []
    failures: List[FailedUpload] = []

    for file in files:
        stored = None
        try:
            check_upload(file)
            path = build_storage_path(trip_id, reservation_id, file.file_name)
            blobs.upload(path, file.data, file.content_type)
            stored = path

            attachment = ReservationAttachment(
                reservation_id=reservation_id,
                file_url=blobs.get_public_url(path),
                file_name=file.file_name,
                file_type=file.content_type
            )
            with write_transaction(db, "record attachment", reservation_id=reservation_id):
                db.add(attachment)
            db.refresh(attachment)
            attachments.append(AttachmentResponse.model_validate(attachment))
        except Exception as e:
            logger.warning(
                f"Skipping upload of '{file.file_name}' for reservation {reservation_id}: {e}"
            )
            failures.append(FailedUpload(file_name=file.file_name, reason=str(e)))
            if stored is not None:
                _remove_blobs_quietly([stored], blobs)

    return attachments, failures


def sync_reservation_members(
    reservation_id: int,
    member_ids: Iterable[int],
    db: Session
) -> None:
    """Replace the reservation's assignees with exactly member_ids.

    Deletes every join row and inserts the target set in one transaction,
    regardless of how small the change is.
    """
    target = list(dict.fromkeys(member_ids))
    with write_transaction(db, "sync reservation members", reservation_id=reservation_id):
        db.query(ReservationMember).filter(
            ReservationMember.reservation_id == reservation_id
        ).delete(synchronize_session=False)
        if target:
            db.add_all([
                ReservationMember(reservation_id=reservation_id, member_id=member_id)
                for member_id in target
            ])


def _scalar_fields(form: ReservationForm) -> Dict[str, object]:
    """Validate and normalize the reservation's own columns."""
    return {
        "title": require_text(form.title, "Reservation title"),
        "booking_site": clean_text(form.booking_site),
        "booking_number": clean_text(form.booking_number),
        "scheduled_at": local_to_utc(form.scheduled_at, form.timezone or settings.DEFAULT_TIMEZONE),
        "memo": clean_text(form.memo),
    }


def _check_members_in_trip(trip_id: int, member_ids: Iterable[int], db: Session) -> None:
    wanted = set(member_ids)
    if not wanted:
        return
    found = {
        member_id for (member_id,) in db.query(Member.id).filter(
            Member.trip_id == trip_id,
            Member.id.in_(wanted)
        ).all()
    }
    missing = wanted - found
    if missing:
        raise ValidationError(f"Members not in trip {trip_id}: {sorted(missing)}")


def _get_reservation(reservation_id: int, db: Session) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise NotFoundError(
            f"Reservation {reservation_id} not found",
            code=ErrorCode.RESERVATION_NOT_FOUND
        )
    return reservation


def _remove_blobs_quietly(paths: List[str], blobs: BlobStore) -> None:
    # Rows are already gone; a leftover blob is only wasted space
    try:
        blobs.remove(paths)
    except Exception as e:
        logger.error(f"Failed to remove blobs {paths}: {e}")


def _blob_paths(urls: Iterable[str], blobs: BlobStore) -> List[str]:
    paths = [blobs.path_from_url(url) for url in urls]
    return [p for p in paths if p]


def create_reservation(
    trip_id: int,
    form: ReservationForm,
    files: List[UploadedFile],
    db: Session,
    blobs: BlobStore
) -> ReservationWriteResult:
    """Insert a reservation, assign its members, then store its files."""
    fields = _scalar_fields(form)
    _check_members_in_trip(trip_id, form.member_ids, db)

    reservation = Reservation(trip_id=trip_id, **fields)
    with write_transaction(db, "create reservation"):
        db.add(reservation)
    db.refresh(reservation)
    reservation_id = reservation.id

    sync_reservation_members(reservation_id, form.member_ids, db)
    attachments, failures = upload_files(trip_id, reservation_id, files, db, blobs)

    logger.info(
        f"Created reservation {reservation_id} in trip {trip_id} "
        f"({len(attachments)} files stored, {len(failures)} skipped)"
    )
    return ReservationWriteResult(
        reservation_id=reservation_id,
        attachments=attachments,
        failed_uploads=failures
    )


def update_reservation(
    reservation_id: int,
    form: ReservationForm,
    files: List[UploadedFile],
    removed_attachment_ids: List[int],
    db: Session,
    blobs: BlobStore
) -> ReservationWriteResult:
    """Update scalars, re-sync members, drop removed attachments, store new files."""
    reservation = _get_reservation(reservation_id, db)
    trip_id = reservation.trip_id
    fields = _scalar_fields(form)
    _check_members_in_trip(trip_id, form.member_ids, db)

    removed_ids: List[int] = []
    removed_urls: List[str] = []
    if removed_attachment_ids:
        removed = db.query(ReservationAttachment).filter(
            ReservationAttachment.id.in_(removed_attachment_ids),
            ReservationAttachment.reservation_id == reservation_id
        ).all()
        if len(removed) != len(set(removed_attachment_ids)):
            raise NotFoundError(
                f"Attachments not on reservation {reservation_id}: {removed_attachment_ids}",
                code=ErrorCode.ATTACHMENT_NOT_FOUND
            )
        removed_ids = [a.id for a in removed]
        removed_urls = [a.file_url for a in removed]

    with write_transaction(db, "update reservation", reservation_id=reservation_id):
        for key, value in fields.items():
            setattr(reservation, key, value)
        reservation.updated_at = utcnow()

    sync_reservation_members(reservation_id, form.member_ids, db)

    if removed_ids:
        with write_transaction(db, "remove attachments", reservation_id=reservation_id):
            db.query(ReservationAttachment).filter(
                ReservationAttachment.id.in_(removed_ids)
            ).delete(synchronize_session=False)
        _remove_blobs_quietly(_blob_paths(removed_urls, blobs), blobs)

    attachments, failures = upload_files(trip_id, reservation_id, files, db, blobs)
    return ReservationWriteResult(
        reservation_id=reservation_id,
        attachments=attachments,
        failed_uploads=failures
    )


def delete_reservation(reservation_id: int, db: Session, blobs: BlobStore) -> None:
    """Delete a reservation and the blobs behind its attachments.

    Join rows and attachment rows are removed by ON DELETE CASCADE.
    """
    _get_reservation(reservation_id, db)
    urls = [
        url for (url,) in db.query(ReservationAttachment.file_url).filter(
            ReservationAttachment.reservation_id == reservation_id
        ).all()
    ]

    with write_transaction(db, "delete reservation", reservation_id=reservation_id):
        db.query(Reservation).filter(Reservation.id == reservation_id).delete(synchronize_session=False)

    _remove_blobs_quietly(_blob_paths(urls, blobs), blobs)
    logger.info(f"Deleted reservation {reservation_id} and {len(urls)} attachments")
