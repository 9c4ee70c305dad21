"""
Member routes for a trip addressed by share id.
"""
from fastapi import APIRouter, Depends, Query, status
from app.api.dependencies import get_dashboard
from app.schemas.dashboard import TripAggregate
from app.schemas.member import MemberCreate, MemberUpdate
from app.services.dashboard import TripDashboard

router = APIRouter(prefix="/trips/{share_id}/members", tags=["members"])


@router.post("", response_model=TripAggregate, status_code=status.HTTP_201_CREATED)
async def add_member(
    member_data: MemberCreate,
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Add a member to the trip."""
    dashboard.add_member(member_data.name, member_data.avatar_emoji)
    return dashboard.aggregate


@router.put("/{member_id}", response_model=TripAggregate)
async def update_member(
    member_id: int,
    member_data: MemberUpdate,
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Update a member's name and emoji."""
    dashboard.update_member(member_id, member_data.name, member_data.avatar_emoji)
    return dashboard.aggregate


@router.delete("/{member_id}", response_model=TripAggregate)
async def delete_member(
    member_id: int,
    confirm: bool = Query(False),
    dashboard: TripDashboard = Depends(get_dashboard)
):
    """Remove a member. Their reservations stay, unassigned from them."""
    dashboard.delete_member(member_id, confirmed=confirm)
    return dashboard.aggregate
