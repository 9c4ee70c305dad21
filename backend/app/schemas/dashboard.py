"""
Pydantic schemas for the loaded trip aggregate and its derived views.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from app.schemas.member import MemberResponse
from app.schemas.reservation import FailedUpload, ReservationWithDetails
from app.schemas.record import Record
from app.schemas.trip import TripResponse


class TripAggregate(Record):
    """A trip with its members and fully resolved reservations.

    Instances are immutable; the with_/without_ helpers return patched
    copies used to keep a loaded dashboard current without reloading.
    """
    trip: TripResponse
    members: List[MemberResponse] = []
    reservations: List[ReservationWithDetails] = []

    def find_member(self, member_id: int) -> Optional[MemberResponse]:
        return next((m for m in self.members if m.id == member_id), None)

    def find_reservation(self, reservation_id: int) -> Optional[ReservationWithDetails]:
        return next((r for r in self.reservations if r.id == reservation_id), None)

    def with_trip(self, trip: TripResponse) -> "TripAggregate":
        return self.model_copy(update={"trip": trip})

    def with_member_added(self, member: MemberResponse) -> "TripAggregate":
        return self.model_copy(update={"members": [*self.members, member]})

    def with_member_updated(self, member: MemberResponse) -> "TripAggregate":
        """Replace a member everywhere it appears, including reservation assignees."""
        members = [member if m.id == member.id else m for m in self.members]
        reservations = [
            r.model_copy(update={
                "members": [member if m.id == member.id else m for m in r.members]
            })
            for r in self.reservations
        ]
        return self.model_copy(update={"members": members, "reservations": reservations})

    def without_member(self, member_id: int) -> "TripAggregate":
        members = [m for m in self.members if m.id != member_id]
        reservations = [
            r.model_copy(update={
                "members": [m for m in r.members if m.id != member_id]
            })
            for r in self.reservations
        ]
        return self.model_copy(update={"members": members, "reservations": reservations})

    def without_reservation(self, reservation_id: int) -> "TripAggregate":
        return self.model_copy(update={
            "reservations": [r for r in self.reservations if r.id != reservation_id]
        })


class ReservationWriteResponse(BaseModel):
    """Dashboard after a reservation write plus per-file upload failures."""
    reservation_id: int
    dashboard: TripAggregate
    failed_uploads: List[FailedUpload] = []


class TimelineEntry(BaseModel):
    """One reservation in display order, with its date separator flag."""
    show_date_label: bool
    label_date: Optional[date] = None
    reservation: ReservationWithDetails
