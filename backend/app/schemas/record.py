"""
Shared base for immutable records built from ORM rows.
"""
from pydantic import BaseModel, field_validator
from app.core.utils import ensure_utc


class Record(BaseModel):
    """Frozen snapshot of a stored row; datetimes are aware UTC."""

    @field_validator("created_at", "updated_at", "scheduled_at", mode="after", check_fields=False)
    @classmethod
    def normalize_datetimes(cls, v):
        return ensure_utc(v)

    class Config:
        from_attributes = True
        frozen = True
