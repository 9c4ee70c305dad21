"""
Trip model, the shareable container for a journey's reservations.
"""
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Trip(BaseModel):
    """Trip addressed publicly by its share_id."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    share_id = Column(String(16), unique=True, nullable=False, index=True)

    # Relationships; rows are removed by ON DELETE CASCADE
    members = relationship("Member", back_populates="trip", passive_deletes=True)
    reservations = relationship("Reservation", back_populates="trip", passive_deletes=True)
