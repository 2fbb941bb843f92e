"""
Compatibility Scorer
Scores how well a venue fits an event on four independent, equally weighted
checks (availability, capacity, category, venue type), 25 points each.

Also produces auto-match recommendations: the best available venue with
enough capacity for each event.
"""

import logging
from typing import Iterable, List, Mapping, Sequence

from gigcrm.engine.conflicts import has_conflict
from gigcrm.engine.errors import InvalidInputError
from gigcrm.models import (
    Booking, CompatibilityResult, Event, MatchRecommendation, Venue, VenueCategory,
)

logger = logging.getLogger(__name__)

NO_CANDIDATE = "No available venue meets the minimum criteria (availability and capacity)."


def validate_event(event: Event) -> None:
    """Raise InvalidInputError unless the event can be scheduled."""
    if event.required_capacity is None or event.required_capacity <= 0:
        raise InvalidInputError(f"Required capacity must be positive, got {event.required_capacity}")
    if event.duration_hours is None or event.duration_hours <= 0:
        raise InvalidInputError(f"Duration must be positive, got {event.duration_hours}")
    if event.event_date is None or event.start_time is None:
        raise InvalidInputError(f"Event #{event.id} has no date or start time")


def _validate(venue: Venue, event: Event) -> None:
    if venue.capacity is None or venue.capacity <= 0:
        raise InvalidInputError(f"Venue capacity must be positive, got {venue.capacity}")
    validate_event(event)


def category_matches(venue_category: VenueCategory, event_category: VenueCategory) -> bool:
    """CONVERTIBLE events need CONVERTIBLE venues; a CONVERTIBLE venue suits anything."""
    if event_category == VenueCategory.CONVERTIBLE:
        return venue_category == VenueCategory.CONVERTIBLE
    return venue_category in (event_category, VenueCategory.CONVERTIBLE)


def type_matches(venue_types: Iterable[str], event_type: str) -> bool:
    wanted = (event_type or '').strip().lower()
    return bool(wanted) and wanted in {t.strip().lower() for t in venue_types}


def score(
    venue: Venue,
    event: Event,
    bookings: Iterable[Booking],
    events: Mapping[int, Event],
) -> CompatibilityResult:
    """
    Evaluate the four checks for one venue/event pair. No side effects.

    Bookings of the event itself are ignored, so an already-booked event
    still reads as available at its own venue.

    Raises:
        InvalidInputError: non-positive capacity/duration or missing date/time
    """
    _validate(venue, event)

    others = [b for b in bookings if event.id is None or b.event_id != event.id]
    available = not has_conflict(
        venue.id, event.event_date, event.start_time, event.duration_hours, others, events,
    )

    result = CompatibilityResult(
        venue_id=venue.id,
        event_id=event.id,
        available=available,
        capacity_ok=venue.capacity >= event.required_capacity,
        category_ok=category_matches(venue.category, event.category),
        type_ok=type_matches(venue.venue_types, event.event_type),
    )
    logger.debug(f"score: venue={venue.id} event={event.id} -> {result.score}")
    return result


def rank_venues(
    event: Event,
    venues: Sequence[Venue],
    bookings: Sequence[Booking],
    events: Mapping[int, Event],
) -> List[CompatibilityResult]:
    """Score every venue for an event, highest score first (stable on venue order)."""
    results = [score(v, event, bookings, events) for v in venues]
    return sorted(results, key=lambda r: -r.score)


def recommend_venues(
    event: Event,
    venues: Sequence[Venue],
    bookings: Sequence[Booking],
    events: Mapping[int, Event],
) -> MatchRecommendation:
    """
    Pick the best venue for an event.

    Candidates must be available and large enough. Among them the highest
    score wins; equal scores go to the smallest capacity surplus, then the
    lowest venue id, so the pick is deterministic.
    """
    candidates = []
    for venue in venues:
        result = score(venue, event, bookings, events)
        if result.available and result.capacity_ok:
            candidates.append((venue, result))

    if not candidates:
        logger.info(f"recommend_venues: no candidate for event #{event.id}")
        return MatchRecommendation(event=event, venue=None, result=None, unmet_criteria=[NO_CANDIDATE])

    candidates.sort(key=lambda c: (
        -c[1].score,
        c[0].capacity - event.required_capacity,
        c[0].id if c[0].id is not None else 0,
    ))
    venue, result = candidates[0]
    logger.info(f"recommend_venues: event #{event.id} -> venue #{venue.id} ({result.score})")
    return MatchRecommendation(event=event, venue=venue, result=result, unmet_criteria=result.unmet_criteria)


def recommend_all(
    pending_events: Iterable[Event],
    venues: Sequence[Venue],
    bookings: Sequence[Booking],
    events: Mapping[int, Event],
) -> List[MatchRecommendation]:
    return [recommend_venues(e, venues, bookings, events) for e in pending_events]
