"""
Timeline service: date separators for the reservation list.
"""
from typing import List, Sequence
from app.core.utils import utc_to_local
from app.schemas.dashboard import TimelineEntry
from app.schemas.reservation import ReservationWithDetails


def date_separators(reservations: Sequence[ReservationWithDetails], tz_name: str) -> List[bool]:
    """Flag reservations that start a new calendar day in tz_name.

    A flagged reservation is scheduled and is either first, follows an
    unscheduled one, or falls on a different local date than its
    predecessor. Unscheduled reservations are never flagged.
    """
    flags = []
    previous_date = None
    for index, reservation in enumerate(reservations):
        if reservation.scheduled_at is None:
            flags.append(False)
            previous_date = None
            continue
        current_date = utc_to_local(reservation.scheduled_at, tz_name).date()
        flags.append(index == 0 or previous_date is None or current_date != previous_date)
        previous_date = current_date
    return flags


def build_timeline(reservations: Sequence[ReservationWithDetails], tz_name: str) -> List[TimelineEntry]:
    """Pair each reservation with its separator flag and local date."""
    entries = []
    for reservation, show_label in zip(reservations, date_separators(reservations, tz_name)):
        label_date = None
        if reservation.scheduled_at is not None:
            label_date = utc_to_local(reservation.scheduled_at, tz_name).date()
        entries.append(TimelineEntry(
            show_date_label=show_label,
            label_date=label_date,
            reservation=reservation
        ))
    return entries
