"""
Agency Facade
Module-level entry points used by the CLI. Wires a single BookingManager to the
PostgreSQL stores on first use; tests and the CSV importer can swap in another
manager with set_manager().
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from gigcrm.bus.events import bus, EVENT_VENUE_SAVED, EVENT_VENUE_DELETED
from gigcrm.engine import commission
from gigcrm.engine.bookings import ACTIVE_STATUSES, BookingManager
from gigcrm.engine.errors import BookingError, InvalidInputError, NotFoundError
from gigcrm.models import (
    Booking, Client, ClientSummary, CompatibilityResult, Event, Financials,
    MatchRecommendation, Venue,
)

logger = logging.getLogger(__name__)

_manager: Optional[BookingManager] = None


def get_manager() -> BookingManager:
    """Return the shared manager, building it over PostgreSQL on first call."""
    global _manager
    if _manager is None:
        from gigcrm.db.postgres import (
            PostgresBookingStore, PostgresClientStore, PostgresEventStore, PostgresVenueStore,
        )
        _manager = BookingManager(
            PostgresVenueStore(),
            PostgresEventStore(),
            PostgresClientStore(),
            PostgresBookingStore(),
        )
        logger.debug("Booking manager initialised with PostgreSQL stores")
    return _manager


def set_manager(manager: Optional[BookingManager]) -> None:
    global _manager
    _manager = manager


# =============================================================================
# VENUES
# =============================================================================

def list_venues() -> List[Venue]:
    return get_manager().venues.list_venues()


def get_venue(venue_id: int) -> Optional[Venue]:
    return get_manager().venues.get_venue(venue_id)


def confirmed_bookings(venue_id: int) -> List[Booking]:
    return get_manager().list_confirmed_for_venue(venue_id)


def add_venue(venue: Venue) -> Venue:
    """
    Validate and store a new venue.
    Raises:
        InvalidInputError: blank name, non-positive capacity or negative price
    """
    if not (venue.name or '').strip():
        raise InvalidInputError("Venue name must not be blank")
    if venue.capacity is None or venue.capacity <= 0:
        raise InvalidInputError(f"Venue capacity must be positive, got {venue.capacity}")
    if venue.hire_price_per_hour < 0:
        raise InvalidInputError(f"Hire price must not be negative, got {venue.hire_price_per_hour}")

    saved = get_manager().venues.save(venue)
    bus.emit(EVENT_VENUE_SAVED, {'venue_id': saved.id, 'venue': saved})
    return saved


def delete_venue(venue_id: int) -> bool:
    """
    Delete a venue that has no active bookings.
    Raises:
        NotFoundError: no such venue
        InvalidInputError: venue still has PENDING or CONFIRMED bookings
    """
    manager = get_manager()
    if manager.venues.get_venue(venue_id) is None:
        raise NotFoundError('venue', venue_id)

    active = [b.id for b in manager.bookings.list_by_venue(venue_id) if b.status in ACTIVE_STATUSES]
    if active:
        logger.warning(f"Refusing to delete venue #{venue_id}: active bookings {active}")
        raise InvalidInputError(f"Venue #{venue_id} still has active bookings {active}")

    deleted = manager.venues.delete(venue_id)
    if deleted:
        logger.info(f"Deleted venue #{venue_id}")
        bus.emit(EVENT_VENUE_DELETED, {'venue_id': venue_id})
    return deleted


# =============================================================================
# EVENTS & CLIENTS
# =============================================================================

def list_events(unbooked: bool = False) -> List[Event]:
    manager = get_manager()
    if unbooked:
        return manager.unbooked_events()
    return manager.events.list_events()


def get_event(event_id: int) -> Optional[Event]:
    return get_manager().events.get_event(event_id)


def get_client(client_id: int) -> Optional[Client]:
    return get_manager().clients.get_client(client_id)


def list_clients() -> List[Client]:
    return get_manager().clients.list_clients()


# =============================================================================
# MATCHING
# =============================================================================

def match_event(event_id: int) -> List[Tuple[Venue, CompatibilityResult]]:
    """Every venue with its compatibility for the event, best first."""
    manager = get_manager()
    venues = {v.id: v for v in manager.venues.list_venues()}
    return [(venues[r.venue_id], r) for r in manager.rank(event_id)]


def recommend(book: bool = False, created_by: str = '') -> List[Tuple[MatchRecommendation, Optional[Booking]]]:
    """
    Auto-match every unbooked event. With book=True each recommendation is
    held as a PENDING booking; one that fails its checks is logged and left
    unbooked.
    """
    manager = get_manager()
    results = []
    for rec in manager.recommend():
        booking = None
        if book and rec.venue is not None:
            try:
                booking = manager.create_pending(rec.event.id, rec.venue.id, created_by)
            except BookingError as e:
                logger.warning(f"Could not hold recommendation for event #{rec.event.id}: {e}")
        results.append((rec, booking))
    return results


# =============================================================================
# BOOKINGS
# =============================================================================

def book(event_id: int, venue_id: int, created_by: str, pending: bool = False) -> Booking:
    manager = get_manager()
    if pending:
        return manager.create_pending(event_id, venue_id, created_by)
    return manager.create_confirmed(event_id, venue_id, created_by)


def confirm(booking_id: int) -> Booking:
    return get_manager().confirm_booking(booking_id)


def cancel(booking_id: int) -> Booking:
    return get_manager().cancel_booking(booking_id)


def update(
    booking_id: int,
    venue_id: Optional[int] = None,
    event_id: Optional[int] = None,
    booking_date: Optional[date] = None,
) -> Booking:
    return get_manager().update_booking(booking_id, venue_id=venue_id, event_id=event_id, booking_date=booking_date)


def _lookups(manager: BookingManager):
    venues = {v.id: v for v in manager.venues.list_venues()}
    events = {e.id: e for e in manager.events.list_events()}
    clients = {c.id: c for c in manager.clients.list_clients()}
    return venues, events, clients


def list_bookings(status: Optional[str] = None) -> List[Tuple[Booking, Venue, Event, Financials]]:
    """
    Bookings with their venue, event and financials.
    Args:
        status: only bookings with this status (case-insensitive)
    """
    manager = get_manager()
    bookings = manager.bookings.list_all()
    venues, events, clients = _lookups(manager)

    rows = []
    for b in bookings:
        if status and b.status.value != status.upper():
            continue
        fin = commission.financials_for_booking(b, venues, events, clients, bookings)
        rows.append((b, venues.get(b.venue_id), events.get(b.event_id), fin))
    return rows


# =============================================================================
# REPORTS
# =============================================================================

def client_summaries() -> List[ClientSummary]:
    manager = get_manager()
    bookings = manager.bookings.list_all()
    venues, events, clients = _lookups(manager)
    return [commission.summarise_client(c, bookings, venues, events) for c in clients.values()]


def venue_utilisation() -> Dict[str, int]:
    manager = get_manager()
    venues = {v.id: v for v in manager.venues.list_venues()}
    return commission.venue_utilisation(manager.bookings.list_all(), venues)
