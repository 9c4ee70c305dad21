"""
Member model for people who book and own reservations.
"""
from sqlalchemy import Column, String, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

COLOR_PALETTE = [
    "#3B82F6",
    "#EF4444",
    "#10B981",
    "#F59E0B",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#F97316",
]

DEFAULT_AVATAR_EMOJI = "👤"


class Member(BaseModel):
    """Member of exactly one trip. Color is fixed at creation."""
    __tablename__ = "members"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    avatar_emoji = Column(String(16), nullable=False, default=DEFAULT_AVATAR_EMOJI)
    color = Column(String(7), nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="members")
    reservation_links = relationship("ReservationMember", back_populates="member", passive_deletes=True)
