"""
Trip routes: creation, the dashboard aggregate and the dated timeline.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.config import settings
from app.db.session import get_db
from app.api.dependencies import get_dashboard
from app.schemas.dashboard import TimelineEntry, TripAggregate
from app.schemas.trip import TripCreate, TripCreatedResponse, TripUpdate
from app.services import trip_service
from app.services.dashboard import TripDashboard
from app.services.timeline_service import build_timeline

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("", response_model=TripCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    db: Session = Depends(get_db)
):
    """Create a new trip and return the dashboard URL to redirect to."""
    trip = trip_service.create_trip(trip_data.name, trip_data.description, db)
    return TripCreatedResponse(trip=trip, url=trip_service.trip_url(trip.share_id))


@router.get("/{share_id}", response_model=TripAggregate)
async def get_trip(dashboard: TripDashboard = Depends(get_dashboard)):
    """Get the trip with its members and reservations."""
    return dashboard.aggregate


@router.put("/{share_id}", response_model=TripAggregate)
async def update_trip(
    trip_data: TripUpdate,
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Rename or re-describe the trip."""
    dashboard.update_trip(trip_data.name, trip_data.description)
    return dashboard.aggregate


@router.get("/{share_id}/timeline", response_model=List[TimelineEntry])
async def get_timeline(
    tz: Optional[str] = Query(None, description="IANA zone for calendar dates"),
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Reservations in display order, flagged where a new date begins."""
    return build_timeline(dashboard.aggregate.reservations, tz or settings.DEFAULT_TIMEZONE)
