"""
Member service for adding, editing and removing trip members.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from app.core.errors import ErrorCode, NotFoundError
from app.core.utils import clean_text, require_text
from app.db.session import write_transaction
from app.models.member import COLOR_PALETTE, DEFAULT_AVATAR_EMOJI, Member
from app.schemas.member import MemberResponse

logger = logging.getLogger(__name__)


def pick_member_color(member_count: int) -> str:
    """Palette color for the next member; cycles once the palette runs out."""
    return COLOR_PALETTE[member_count % len(COLOR_PALETTE)]


def add_member(
    trip_id: int,
    name: str,
    emoji: Optional[str],
    db: Session
) -> MemberResponse:
    """Add a member, coloring it by the trip's current member count."""
    name = require_text(name, "Member name")
    count = db.query(Member).filter(Member.trip_id == trip_id).count()

    member = Member(
        trip_id=trip_id,
        name=name,
        avatar_emoji=clean_text(emoji) or DEFAULT_AVATAR_EMOJI,
        color=pick_member_color(count)
    )
    with write_transaction(db, "add member"):
        db.add(member)
    db.refresh(member)
    return MemberResponse.model_validate(member)


def _get_member(member_id: int, db: Session) -> Member:
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise NotFoundError(f"Member {member_id} not found", code=ErrorCode.MEMBER_NOT_FOUND)
    return member


def update_member(
    member_id: int,
    name: str,
    emoji: Optional[str],
    db: Session
) -> MemberResponse:
    """Change a member's name and emoji. The color stays as assigned."""
    name = require_text(name, "Member name")
    member = _get_member(member_id, db)

    with write_transaction(db, "update member"):
        member.name = name
        member.avatar_emoji = clean_text(emoji) or member.avatar_emoji
    db.refresh(member)
    return MemberResponse.model_validate(member)


def delete_member(member_id: int, db: Session) -> None:
    """Delete a member.

    Its reservation assignments go with it through ON DELETE CASCADE;
    the reservations themselves are untouched.
    """
    _get_member(member_id, db)
    with write_transaction(db, "delete member"):
        db.query(Member).filter(Member.id == member_id).delete(synchronize_session=False)
    logger.info(f"Deleted member {member_id}")
