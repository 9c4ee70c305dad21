"""
Utility functions for the application.
"""
import random
import string
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.errors import ValidationError

SHARE_ID_LENGTH = 8
SHARE_ID_ALPHABET = string.ascii_lowercase + string.digits
FILE_SUFFIX_LENGTH = 4


def random_token(length: int, rng: Optional[random.Random] = None) -> str:
    """Random lowercase alphanumeric string. Not suitable for secrets."""
    rng = rng or random
    return "".join(rng.choice(SHARE_ID_ALPHABET) for _ in range(length))


def generate_share_id(rng: Optional[random.Random] = None) -> str:
    """Generate the public 8-character identifier of a trip.

    No uniqueness check happens here; a collision is rejected by the
    unique constraint on trips.share_id when the trip is inserted.
    """
    return random_token(SHARE_ID_LENGTH, rng)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_timezone(name: str) -> ZoneInfo:
    """Look up an IANA zone, raising ValidationError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}")


def local_to_utc(value: Optional[str], tz_name: str) -> Optional[datetime]:
    """Convert a wall-clock string such as '2026-03-01T10:00' to a UTC instant.

    Empty input means "no schedule". Times that fall in a DST gap or fold
    resolve with fold=0, i.e. the offset in effect before the transition.
    """
    if value is None or not value.strip():
        return None
    try:
        naive = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid scheduled time: {value}")
    zone = resolve_timezone(tz_name)
    if naive.tzinfo is not None:
        # Already an instant; the zone only matters for wall-clock input
        return naive.astimezone(timezone.utc)
    return naive.replace(tzinfo=zone, fold=0).astimezone(timezone.utc)


def utc_to_local(value: datetime, tz_name: str) -> datetime:
    """Express a stored instant on the wall clock of tz_name."""
    return ensure_utc(value).astimezone(resolve_timezone(tz_name))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim optional text; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_text(value: Optional[str], field: str) -> str:
    """Trim a required text field, raising ValidationError when blank."""
    cleaned = clean_text(value)
    if cleaned is None:
        raise ValidationError(f"{field} must not be empty")
    return cleaned


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
