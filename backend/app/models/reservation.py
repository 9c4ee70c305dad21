"""
Reservation models: the booking itself, its assignees and its evidence files.
"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.utils import utcnow
from app.db.base import BaseModel


class Reservation(BaseModel):
    """One bookable item (hotel, flight, ...) of a trip."""
    __tablename__ = "reservations"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    booking_site = Column(String(200), nullable=True)
    booking_number = Column(String(100), nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True, index=True)
    memo = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="reservations")
    member_links = relationship("ReservationMember", back_populates="reservation", passive_deletes=True)
    attachments = relationship("ReservationAttachment", back_populates="reservation", passive_deletes=True)


class ReservationMember(BaseModel):
    """Junction table for Reservation and Member many-to-many relationship."""
    __tablename__ = "reservation_members"
    __table_args__ = (
        UniqueConstraint("reservation_id", "member_id", name="uq_reservation_members_pair"),
    )

    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    reservation = relationship("Reservation", back_populates="member_links")
    member = relationship("Member", back_populates="reservation_links")


class ReservationAttachment(BaseModel):
    """Metadata and public URL of a stored evidence file."""
    __tablename__ = "reservation_attachments"

    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    file_url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=True)

    # Relationships
    reservation = relationship("Reservation", back_populates="attachments")
