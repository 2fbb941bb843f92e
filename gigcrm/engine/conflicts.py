"""
Conflict Checker
Decides whether a venue already has a confirmed booking overlapping a requested
date/time window. Pure functions over id-indexed collections, no I/O.

Windows are half-open, [start, start + duration), compared at minute
resolution on the same calendar date, so a booking ending at 16:00 does not
block one starting at 16:00. Only CONFIRMED bookings block.
"""

import logging
from datetime import date, time
from typing import Iterable, List, Mapping, Optional, Tuple

from gigcrm.engine.errors import InvalidInputError
from gigcrm.models import Booking, BookingStatus, Event

logger = logging.getLogger(__name__)


def window_minutes(start_time: time, duration_hours: int) -> Tuple[int, int]:
    """Return (start, end) in minutes after midnight; end may pass 24:00."""
    start = start_time.hour * 60 + start_time.minute
    return start, start + duration_hours * 60


def overlaps(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def find_conflicts(
    venue_id: int,
    on_date: date,
    start_time: time,
    duration_hours: int,
    bookings: Iterable[Booking],
    events: Mapping[int, Event],
    exclude_booking_id: Optional[int] = None,
) -> List[Booking]:
    """
    Return the CONFIRMED bookings of venue_id that overlap the requested window.

    Args:
        bookings: candidate bookings (any venue, any status)
        events: event records by id, used to resolve each booking's window
        exclude_booking_id: booking to ignore, so an update never clashes with itself
    Raises:
        InvalidInputError: duration_hours <= 0 or missing date/time
    """
    if duration_hours is None or duration_hours <= 0:
        raise InvalidInputError(f"Duration must be a positive number of hours, got {duration_hours}")
    if on_date is None or start_time is None:
        raise InvalidInputError("A date and start time are required to check availability")

    requested = window_minutes(start_time, duration_hours)
    conflicts = []

    for booking in bookings:
        if booking.status != BookingStatus.CONFIRMED:
            continue
        if booking.venue_id != venue_id:
            continue
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue

        booked = events.get(booking.event_id)
        if booked is None or booked.event_date is None or booked.start_time is None:
            logger.warning(f"Booking #{booking.id} has no resolvable event #{booking.event_id}; not treated as blocking")
            continue
        if booked.event_date != on_date:
            continue

        if overlaps(requested, window_minutes(booked.start_time, booked.duration_hours)):
            conflicts.append(booking)

    logger.debug(
        f"find_conflicts: venue={venue_id} date={on_date} start={start_time} "
        f"duration={duration_hours}h -> {len(conflicts)} conflicts"
    )
    return conflicts


def has_conflict(
    venue_id: int,
    on_date: date,
    start_time: time,
    duration_hours: int,
    bookings: Iterable[Booking],
    events: Mapping[int, Event],
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """True if any CONFIRMED booking of the venue overlaps the window."""
    return bool(find_conflicts(
        venue_id, on_date, start_time, duration_hours, bookings, events, exclude_booking_id,
    ))
