"""
Shared FastAPI dependencies.
"""
from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.storage import BlobStore, LocalBlobStore
from app.db.session import get_db
from app.services.dashboard import TripDashboard


def get_blob_store() -> BlobStore:
    """Dependency for the evidence file store."""
    return LocalBlobStore(
        settings.UPLOAD_DIR,
        settings.PUBLIC_BASE_URL,
        settings.STATIC_URL_PATH
    )


def get_dashboard(
    share_id: str,
    db: Session = Depends(get_db),
    blobs: BlobStore = Depends(get_blob_store)
) -> TripDashboard:
    """Load the trip addressed by the share id in the path, or 404."""
    return TripDashboard.open(share_id, db, blobs)
