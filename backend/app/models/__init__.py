"""Models package - Import all models for SQLAlchemy registration."""
from app.models.trip import Trip
from app.models.member import Member, COLOR_PALETTE, DEFAULT_AVATAR_EMOJI
from app.models.reservation import Reservation, ReservationMember, ReservationAttachment

__all__ = [
    "Trip",
    "Member",
    "COLOR_PALETTE",
    "DEFAULT_AVATAR_EMOJI",
    "Reservation",
    "ReservationMember",
    "ReservationAttachment",
]
