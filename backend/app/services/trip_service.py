"""
Trip service: trip creation and renaming, and loading the trip aggregate.
"""
import logging
import random
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.errors import ErrorCode, LoadError, NotFoundError
from app.core.utils import clean_text, generate_share_id, require_text
from app.db.session import write_transaction
from app.models.member import Member
from app.models.reservation import Reservation, ReservationAttachment, ReservationMember
from app.models.trip import Trip
from app.schemas.dashboard import TripAggregate
from app.schemas.member import MemberResponse
from app.schemas.reservation import AttachmentResponse, ReservationResponse, ReservationWithDetails
from app.schemas.trip import TripResponse

logger = logging.getLogger(__name__)


def trip_url(share_id: str) -> str:
    """Dashboard path for a trip, used as the redirect target after creation."""
    return f"/trips/{share_id}"


def create_trip(
    name: str,
    description: Optional[str],
    db: Session,
    rng: Optional[random.Random] = None
) -> TripResponse:
    """Create a trip under a freshly generated share id.

    A share id collision is not retried; the unique constraint rejects it
    and the caller sees a WriteFailure.
    """
    trip = Trip(
        name=require_text(name, "Trip name"),
        description=clean_text(description),
        share_id=generate_share_id(rng)
    )
    with write_transaction(db, "create trip"):
        db.add(trip)
    db.refresh(trip)

    logger.info(f"Created trip {trip.id} with share id {trip.share_id}")
    return TripResponse.model_validate(trip)


def update_trip(
    trip_id: int,
    name: str,
    description: Optional[str],
    db: Session
) -> TripResponse:
    """Rename or re-describe a trip in place."""
    name = require_text(name, "Trip name")
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError(f"Trip {trip_id} not found")

    with write_transaction(db, "update trip"):
        trip.name = name
        trip.description = clean_text(description)
    db.refresh(trip)
    return TripResponse.model_validate(trip)


def get_trip_by_share_id(share_id: str, db: Session) -> Trip:
    """Fetch exactly one trip by share id or raise NotFoundError."""
    trip = db.query(Trip).filter(Trip.share_id == share_id).first()
    if not trip:
        raise NotFoundError(f"No trip for share id {share_id}", code=ErrorCode.TRIP_NOT_FOUND)
    return trip


def load_trip_aggregate(share_id: str, db: Session) -> TripAggregate:
    """Load a trip with its members and fully resolved reservations.

    Members come back in insertion order, reservations by scheduled time
    with unscheduled ones last. Assigned members are resolved against the
    members already loaded for the trip. Any failing query aborts the whole
    load with LoadError; a partial aggregate is never returned.
    """
    try:
        trip = get_trip_by_share_id(share_id, db)

        members = [
            MemberResponse.model_validate(m)
            for m in db.query(Member).filter(
                Member.trip_id == trip.id
            ).order_by(Member.created_at, Member.id).all()
        ]

        rows = db.query(Reservation).filter(
            Reservation.trip_id == trip.id
        ).order_by(
            Reservation.scheduled_at.is_(None),
            Reservation.scheduled_at,
            Reservation.created_at,
            Reservation.id
        ).all()

        reservations = [_resolve_reservation(row, members, db) for row in rows]
    except SQLAlchemyError as e:
        logger.error(f"Failed to load trip {share_id}: {e}")
        raise LoadError(f"Failed to load trip {share_id}") from e

    return TripAggregate(
        trip=TripResponse.model_validate(trip),
        members=members,
        reservations=reservations
    )


def _resolve_reservation(
    row: Reservation,
    members: List[MemberResponse],
    db: Session
) -> ReservationWithDetails:
    """Attach assignees and attachments to one reservation row."""
    assigned = {
        member_id for (member_id,) in db.query(ReservationMember.member_id).filter(
            ReservationMember.reservation_id == row.id
        ).all()
    }
    attachments = db.query(ReservationAttachment).filter(
        ReservationAttachment.reservation_id == row.id
    ).order_by(ReservationAttachment.created_at, ReservationAttachment.id).all()

    return ReservationWithDetails(
        **ReservationResponse.model_validate(row).model_dump(),
        members=[m for m in members if m.id in assigned],
        attachments=[AttachmentResponse.model_validate(a) for a in attachments]
    )
