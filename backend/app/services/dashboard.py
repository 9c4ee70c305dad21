"""
Trip dashboard: a loaded trip aggregate plus the mutations that keep it current.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from app.core.errors import ConfirmationRequired, ErrorCode, NotFoundError
from app.core.storage import BlobStore
from app.schemas.dashboard import TripAggregate
from app.schemas.member import MemberResponse
from app.schemas.reservation import ReservationForm, ReservationWriteResult, UploadedFile
from app.schemas.trip import TripResponse
from app.services import member_service, reservation_service, trip_service

logger = logging.getLogger(__name__)


class TripDashboard:
    """Mutations scoped to one trip, addressed by share id.

    Trip and member edits and reservation deletion patch the cached
    aggregate in place of a reload; reservation create and update reload
    it, since they touch several tables at once. Ids that do not belong to
    the loaded trip are rejected with NotFoundError before anything is
    written.
    """

    def __init__(self, aggregate: TripAggregate, db: Session, blobs: BlobStore):
        self.aggregate = aggregate
        self.db = db
        self.blobs = blobs

    @classmethod
    def open(cls, share_id: str, db: Session, blobs: BlobStore) -> "TripDashboard":
        return cls(trip_service.load_trip_aggregate(share_id, db), db, blobs)

    @property
    def trip_id(self) -> int:
        return self.aggregate.trip.id

    def reload(self) -> TripAggregate:
        self.aggregate = trip_service.load_trip_aggregate(self.aggregate.trip.share_id, self.db)
        return self.aggregate

    def _require_member(self, member_id: int) -> MemberResponse:
        member = self.aggregate.find_member(member_id)
        if member is None:
            raise NotFoundError(
                f"Member {member_id} is not part of trip {self.trip_id}",
                code=ErrorCode.MEMBER_NOT_FOUND
            )
        return member

    def _require_reservation(self, reservation_id: int) -> None:
        if self.aggregate.find_reservation(reservation_id) is None:
            raise NotFoundError(
                f"Reservation {reservation_id} is not part of trip {self.trip_id}",
                code=ErrorCode.RESERVATION_NOT_FOUND
            )

    def update_trip(self, name: str, description: Optional[str]) -> TripResponse:
        trip = trip_service.update_trip(self.trip_id, name, description, self.db)
        self.aggregate = self.aggregate.with_trip(trip)
        return trip

    def add_member(self, name: str, emoji: Optional[str]) -> MemberResponse:
        member = member_service.add_member(self.trip_id, name, emoji, self.db)
        self.aggregate = self.aggregate.with_member_added(member)
        return member

    def update_member(self, member_id: int, name: str, emoji: Optional[str]) -> MemberResponse:
        self._require_member(member_id)
        member = member_service.update_member(member_id, name, emoji, self.db)
        self.aggregate = self.aggregate.with_member_updated(member)
        return member

    def delete_member(self, member_id: int, confirmed: bool = False) -> None:
        member = self._require_member(member_id)
        if not confirmed:
            raise ConfirmationRequired(f"Deleting member '{member.name}' needs confirmation")
        member_service.delete_member(member_id, self.db)
        self.aggregate = self.aggregate.without_member(member_id)

    def create_reservation(
        self,
        form: ReservationForm,
        files: List[UploadedFile]
    ) -> ReservationWriteResult:
        result = reservation_service.create_reservation(
            self.trip_id, form, files, self.db, self.blobs
        )
        self.reload()
        return result

    def update_reservation(
        self,
        reservation_id: int,
        form: ReservationForm,
        files: List[UploadedFile],
        removed_attachment_ids: List[int]
    ) -> ReservationWriteResult:
        self._require_reservation(reservation_id)
        result = reservation_service.update_reservation(
            reservation_id, form, files, removed_attachment_ids, self.db, self.blobs
        )
        self.reload()
        return result

    def delete_reservation(self, reservation_id: int, confirmed: bool = False) -> None:
        self._require_reservation(reservation_id)
        if not confirmed:
            raise ConfirmationRequired(f"Deleting reservation {reservation_id} needs confirmation")
        reservation_service.delete_reservation(reservation_id, self.db, self.blobs)
        self.aggregate = self.aggregate.without_reservation(reservation_id)
        logger.debug(f"Dashboard {self.aggregate.trip.share_id} dropped reservation {reservation_id}")
