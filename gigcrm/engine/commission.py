"""
Commission Calculator
Derives hire price, commission and total for bookings, plus the per-client
and per-venue aggregates the summary views show.

All arithmetic is full-precision Decimal; round only for display
(Financials.rounded() or money.format_currency).
"""

import logging
from collections import Counter
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from gigcrm.config import config
from gigcrm.engine.errors import InvalidInputError
from gigcrm.engine.money import to_decimal
from gigcrm.models import (
    Booking, BookingStatus, Client, ClientSummary, Event, Financials, Venue,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal('0')
_ONE = Decimal('1')


def confirmed_job_count(client_id: int, bookings: Iterable[Booking]) -> int:
    return sum(
        1 for b in bookings
        if b.client_id == client_id and b.status == BookingStatus.CONFIRMED
    )


def commission_rate_for(client: Client, bookings: Optional[Iterable[Booking]] = None) -> Decimal:
    """
    The client's own rate when set, otherwise the agency rate: returning
    clients with more than LOYALTY_JOB_THRESHOLD confirmed jobs get the
    loyalty rate.
    """
    if client.commission_rate is not None:
        return to_decimal(client.commission_rate)
    jobs = confirmed_job_count(client.id, bookings or [])
    if jobs > config.LOYALTY_JOB_THRESHOLD:
        return config.LOYALTY_COMMISSION_RATE
    return config.DEFAULT_COMMISSION_RATE


def compute_financials(
    venue: Optional[Venue],
    event: Optional[Event],
    client: Optional[Client],
    rate: Optional[Decimal] = None,
) -> Financials:
    """
    hire = price per hour x duration, commission = hire x rate, total = hire + commission.

    A missing venue, event or client gives zero financials so summary views
    still render with partial data.

    Args:
        rate: commission rate to apply; defaults to the client's own rate,
              falling back to DEFAULT_COMMISSION_RATE
    Raises:
        InvalidInputError: negative price or duration, or a rate outside [0, 1]
    """
    if venue is None or event is None or client is None:
        logger.debug("compute_financials: missing venue/event/client, returning zero")
        return Financials.zero()

    if rate is None:
        rate = client.commission_rate if client.commission_rate is not None else config.DEFAULT_COMMISSION_RATE
    rate = to_decimal(rate)
    if not _ZERO <= rate <= _ONE:
        raise InvalidInputError(f"Commission rate must be between 0 and 1, got {rate}")

    price = to_decimal(venue.hire_price_per_hour)
    if price < _ZERO:
        raise InvalidInputError(f"Hire price must not be negative, got {price}")
    if event.duration_hours is None or event.duration_hours < 0:
        raise InvalidInputError(f"Duration must not be negative, got {event.duration_hours}")

    hire_price = price * event.duration_hours
    commission = hire_price * rate
    return Financials(hire_price=hire_price, commission=commission, total=hire_price + commission)


def financials_for_booking(
    booking: Booking,
    venues: Mapping[int, Venue],
    events: Mapping[int, Event],
    clients: Mapping[int, Client],
    bookings: Optional[Iterable[Booking]] = None,
) -> Financials:
    """
    Resolve the booking's ids and compute its financials.
    When bookings are given, clients without their own rate get the agency rate
    for their confirmed job count.
    """
    client = clients.get(booking.client_id) if booking.client_id is not None else None
    rate = None
    if client is not None and bookings is not None:
        rate = commission_rate_for(client, bookings)
    return compute_financials(venues.get(booking.venue_id), events.get(booking.event_id), client, rate)


def summarise_client(
    client: Client,
    bookings: Iterable[Booking],
    venues: Mapping[int, Venue],
    events: Mapping[int, Event],
) -> ClientSummary:
    """Totals over the client's CONFIRMED bookings, recomputed every call."""
    bookings = list(bookings)
    rate = commission_rate_for(client, bookings)
    confirmed = [
        b for b in bookings
        if b.client_id == client.id and b.status == BookingStatus.CONFIRMED
    ]

    totals = Financials.zero()
    for b in confirmed:
        totals = totals + compute_financials(venues.get(b.venue_id), events.get(b.event_id), client, rate)

    return ClientSummary(
        client=client,
        job_count=len(confirmed),
        total_hire=totals.hire_price,
        total_commission=totals.commission,
        total=totals.total,
    )


def venue_utilisation(bookings: Iterable[Booking], venues: Mapping[int, Venue]) -> Dict[str, int]:
    """Confirmed booking count per venue name (venues without bookings are omitted)."""
    counts = Counter(b.venue_id for b in bookings if b.status == BookingStatus.CONFIRMED)
    return {
        venues[venue_id].name: n
        for venue_id, n in counts.items()
        if venue_id in venues
    }
