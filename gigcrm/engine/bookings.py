"""
Booking Lifecycle Manager
Owns booking state and the PENDING -> CONFIRMED -> CANCELLED transitions.
Coordinates the conflict checker, the scorer and the stores to decide whether
a booking request succeeds.

Every mutation runs under the locks of the events and venues it touches, so
the checks and the save are one atomic step. Two callers can never both see
"no conflict" and commit overlapping bookings for one venue, and an event
cannot be rescheduled while one of its bookings is being placed.
"""

import logging
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import replace
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from gigcrm.bus.events import (
    bus as default_bus,
    EVENT_BOOKING_CANCELLED, EVENT_BOOKING_CONFIRMED, EVENT_BOOKING_CREATED,
    EVENT_BOOKING_UPDATED, EVENT_EVENT_UPDATED,
)
from gigcrm.db.stores import BookingStore, ClientStore, EventStore, VenueStore
from gigcrm.engine import scoring
from gigcrm.engine.conflicts import find_conflicts
from gigcrm.engine.errors import (
    AlreadyCancelledError, BookingError, CapacityExceededError, EventAlreadyBookedError,
    InvalidInputError, InvalidTransitionError, NotFoundError, SchedulingConflictError,
)
from gigcrm.models import (
    Booking, BookingStatus, Client, CompatibilityResult, Event, MatchRecommendation, Venue,
)

logger = logging.getLogger(__name__)

# Allowed status changes; CANCELLED is terminal
TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}

ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


def assert_transition(booking: Booking, target: BookingStatus) -> None:
    """Raise if booking may not move to target."""
    if booking.status == BookingStatus.CANCELLED:
        raise AlreadyCancelledError(booking.id)
    if target not in TRANSITIONS[booking.status]:
        raise InvalidTransitionError(booking.id, booking.status, target)


class BookingManager:
    """
    Single owner of booking state.

    Venues, events and clients are only read (except through update_event);
    bookings are created and mutated here and persisted through the BookingStore.
    """

    def __init__(
        self,
        venues: VenueStore,
        events: EventStore,
        clients: ClientStore,
        bookings: BookingStore,
        event_bus=None,
        today: Callable[[], date] = date.today,
    ):
        self.venues = venues
        self.events = events
        self.clients = clients
        self.bookings = bookings
        self._bus = event_bus if event_bus is not None else default_bus
        self._today = today
        self._venue_locks: Dict[int, threading.RLock] = {}
        self._event_locks: Dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def _lock_for(self, locks: Dict[int, threading.RLock], key: int) -> threading.RLock:
        with self._locks_guard:
            return locks.setdefault(key, threading.RLock())

    @contextmanager
    def _locked(self, venue_ids: Iterable[int] = (), event_ids: Iterable[int] = ()):
        """
        Hold the locks of the given events, then of the given venues.
        Events always come before venues and each group is taken in id order.
        """
        with ExitStack() as stack:
            for event_id in sorted(set(event_ids)):
                stack.enter_context(self._lock_for(self._event_locks, event_id))
            for venue_id in sorted(set(venue_ids)):
                stack.enter_context(self._lock_for(self._venue_locks, venue_id))
            yield

    @contextmanager
    def _locked_booking(self, booking_id: int, venue_ids: Iterable[int] = (), event_ids: Iterable[int] = ()):
        """
        Lock the booking's current event and venue (plus any extras) and yield
        a fresh copy of the booking. Retries if the booking moved between the
        read and the lock.
        """
        while True:
            seen = self._require_booking(booking_id)
            with self._locked(venue_ids=(seen.venue_id, *venue_ids), event_ids=(seen.event_id, *event_ids)):
                booking = self._require_booking(booking_id)
                if (booking.venue_id, booking.event_id) == (seen.venue_id, seen.event_id):
                    yield booking
                    return

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _require_venue(self, venue_id: int) -> Venue:
        venue = self.venues.get_venue(venue_id)
        if venue is None:
            raise NotFoundError('venue', venue_id)
        return venue

    def _require_event(self, event_id: int) -> Event:
        event = self.events.get_event(event_id)
        if event is None:
            raise NotFoundError('event', event_id)
        return event

    def _require_client(self, client_id: Optional[int]) -> Client:
        client = self.clients.get_client(client_id) if client_id is not None else None
        if client is None:
            raise NotFoundError('client', client_id)
        return client

    def _require_booking(self, booking_id: int) -> Booking:
        booking = self.bookings.get_booking(booking_id)
        if booking is None:
            raise NotFoundError('booking', booking_id)
        return booking

    def _events_for(self, bookings: Iterable[Booking]) -> Dict[int, Event]:
        events = {}
        for b in bookings:
            if b.event_id not in events:
                event = self.events.get_event(b.event_id)
                if event is not None:
                    events[b.event_id] = event
        return events

    # -------------------------------------------------------------------------
    # Checks (caller holds the event and venue locks)
    # -------------------------------------------------------------------------

    def _check_slot(self, venue: Venue, event: Event, exclude_booking_id: Optional[int] = None) -> None:
        """
        Raises:
            InvalidInputError: non-positive capacity/duration, missing date/time
            CapacityExceededError: venue too small
            SchedulingConflictError: overlap with a CONFIRMED booking of the venue
        """
        if venue.capacity is None or venue.capacity <= 0:
            raise InvalidInputError(f"Venue capacity must be positive, got {venue.capacity}")
        if event.required_capacity is None or event.required_capacity <= 0:
            raise InvalidInputError(f"Required capacity must be positive, got {event.required_capacity}")
        if venue.capacity < event.required_capacity:
            logger.warning(
                f"Capacity exceeded: venue #{venue.id} holds {venue.capacity}, "
                f"event #{event.id} needs {event.required_capacity}"
            )
            raise CapacityExceededError(venue.capacity, event.required_capacity)

        existing = self.bookings.list_by_venue(venue.id)
        events = self._events_for(existing)
        # The event being placed may have changed since it was last booked
        if event.id is not None:
            events[event.id] = event
        conflicts = find_conflicts(
            venue.id, event.event_date, event.start_time, event.duration_hours,
            existing, events, exclude_booking_id=exclude_booking_id,
        )
        if conflicts:
            ids = [b.id for b in conflicts]
            logger.warning(f"Scheduling conflict: venue #{venue.id} event #{event.id} clashes with {ids}")
            raise SchedulingConflictError(venue.id, ids)

    def _check_event_free(self, event: Event, exclude_booking_id: Optional[int] = None) -> None:
        """An event holds at most one PENDING or CONFIRMED booking (caller holds the event lock)."""
        active = [
            b.id for b in self.bookings.list_all()
            if b.event_id == event.id and b.status in ACTIVE_STATUSES and b.id != exclude_booking_id
        ]
        if active:
            logger.warning(f"Event #{event.id} already booked: {active}")
            raise EventAlreadyBookedError(event.id, active)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def _create(
        self,
        status: BookingStatus,
        event_id: int,
        venue_id: int,
        created_by: str,
        client_id: Optional[int],
    ) -> Booking:
        with self._locked(venue_ids=(venue_id,), event_ids=(event_id,)):
            event = self._require_event(event_id)
            client = self._require_client(client_id if client_id is not None else event.client_id)
            venue = self._require_venue(venue_id)
            self._check_slot(venue, event)
            self._check_event_free(event)
            booking = self.bookings.save(Booking(
                event_id=event.id,
                venue_id=venue.id,
                client_id=client.id,
                booking_date=self._today(),
                status=status,
                created_by=created_by,
            ))

        logger.info(
            f"Created {status.value} booking #{booking.id}: event #{event.id} "
            f"at venue #{venue.id} for client #{client.id} by {created_by!r}"
        )
        self._bus.emit(EVENT_BOOKING_CREATED, {'booking_id': booking.id, 'booking': booking})
        return booking

    def create_confirmed(
        self, event_id: int, venue_id: int, created_by: str, client_id: Optional[int] = None,
    ) -> Booking:
        """
        Manual match: book and confirm in one step.

        Args:
            client_id: paying client; defaults to the event's owner
        Raises:
            NotFoundError: event, venue or client missing
            InvalidInputError: non-positive capacity/duration
            CapacityExceededError: venue.capacity < event.required_capacity
            SchedulingConflictError: overlaps a CONFIRMED booking of the venue
            EventAlreadyBookedError: the event already has a PENDING or CONFIRMED booking
        """
        return self._create(BookingStatus.CONFIRMED, event_id, venue_id, created_by, client_id)

    create_booking = create_confirmed

    def create_pending(
        self, event_id: int, venue_id: int, created_by: str, client_id: Optional[int] = None,
    ) -> Booking:
        """
        Auto-match: hold the venue as PENDING until staff confirm it.
        Same checks and errors as create_confirmed. Pending bookings do not
        block other bookings.
        """
        return self._create(BookingStatus.PENDING, event_id, venue_id, created_by, client_id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def confirm_booking(self, booking_id: int) -> Booking:
        """
        PENDING -> CONFIRMED. Capacity and conflicts are re-checked, since
        other bookings may have been confirmed while this one was pending.

        Raises:
            NotFoundError, AlreadyCancelledError, InvalidTransitionError,
            CapacityExceededError, SchedulingConflictError
        """
        with self._locked_booking(booking_id) as booking:
            assert_transition(booking, BookingStatus.CONFIRMED)
            self._check_slot(
                self._require_venue(booking.venue_id),
                self._require_event(booking.event_id),
                exclude_booking_id=booking.id,
            )
            self.bookings.update_status(booking.id, BookingStatus.CONFIRMED)
            booking = replace(booking, status=BookingStatus.CONFIRMED)

        logger.info(f"Confirmed booking #{booking.id}")
        self._bus.emit(EVENT_BOOKING_CONFIRMED, {'booking_id': booking.id, 'booking': booking})
        return booking

    def cancel_booking(self, booking_id: int) -> Booking:
        """
        PENDING or CONFIRMED -> CANCELLED.

        Raises:
            NotFoundError: no such booking
            AlreadyCancelledError: booking is already CANCELLED (retries are reported, not ignored)
        """
        with self._locked_booking(booking_id) as booking:
            if booking.status == BookingStatus.CANCELLED:
                logger.warning(f"Cancel rejected: booking #{booking_id} already cancelled")
                raise AlreadyCancelledError(booking_id)
            assert_transition(booking, BookingStatus.CANCELLED)
            self.bookings.update_status(booking.id, BookingStatus.CANCELLED)
            booking = replace(booking, status=BookingStatus.CANCELLED)

        logger.info(f"Cancelled booking #{booking.id}")
        self._bus.emit(EVENT_BOOKING_CANCELLED, {'booking_id': booking.id, 'booking': booking})
        return booking

    def update_booking(
        self,
        booking_id: int,
        venue_id: Optional[int] = None,
        event_id: Optional[int] = None,
        booking_date: Optional[date] = None,
    ) -> Booking:
        """
        Move a booking to another venue and/or event.

        Re-runs the creation checks against the new venue, ignoring the
        booking's own current slot. On success venue, event and booking date
        are replaced together (booking_date defaults to today); on failure the
        stored booking is unchanged.

        Raises:
            NotFoundError, AlreadyCancelledError, InvalidInputError,
            CapacityExceededError, SchedulingConflictError
        """
        extra_venues = (venue_id,) if venue_id is not None else ()
        extra_events = (event_id,) if event_id is not None else ()
        with self._locked_booking(booking_id, venue_ids=extra_venues, event_ids=extra_events) as current:
            if current.status == BookingStatus.CANCELLED:
                raise AlreadyCancelledError(booking_id)

            venue = self._require_venue(venue_id if venue_id is not None else current.venue_id)
            event = self._require_event(event_id if event_id is not None else current.event_id)
            self._check_slot(venue, event, exclude_booking_id=current.id)
            if event.id != current.event_id:
                self._check_event_free(event, exclude_booking_id=current.id)

            updated = self.bookings.save(replace(
                current,
                venue_id=venue.id,
                event_id=event.id,
                booking_date=booking_date or self._today(),
            ))

        logger.info(f"Updated booking #{updated.id}: venue #{updated.venue_id}, event #{updated.event_id}")
        self._bus.emit(EVENT_BOOKING_UPDATED, {'booking_id': updated.id, 'before': current, 'after': updated})
        return updated

    # -------------------------------------------------------------------------
    # Event update workflow
    # -------------------------------------------------------------------------

    def update_event(self, event: Event) -> Event:
        """
        Save changes to a booked event, re-validating every active booking
        linked to it. Nothing is saved if any linked booking would become
        over capacity or conflicting.

        Raises:
            NotFoundError, InvalidInputError, CapacityExceededError, SchedulingConflictError
        """
        if event.id is None:
            raise InvalidInputError("Only stored events can be updated")
        scoring.validate_event(event)

        # No booking of this event can be created or moved while its lock is held
        with self._locked(event_ids=(event.id,)):
            self._require_event(event.id)
            linked = [
                b for b in self.bookings.list_all()
                if b.event_id == event.id and b.status in ACTIVE_STATUSES
            ]
            with self._locked(venue_ids=[b.venue_id for b in linked]):
                for booking in linked:
                    self._check_slot(self._require_venue(booking.venue_id), event, exclude_booking_id=booking.id)
                saved = self.events.save(event)

        logger.info(f"Updated event #{saved.id} ({len(linked)} linked bookings re-checked)")
        self._bus.emit(EVENT_EVENT_UPDATED, {'event_id': saved.id, 'event': saved})
        return saved

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_confirmed_for_venue(self, venue_id: int) -> List[Booking]:
        """Snapshot of the venue's CONFIRMED bookings."""
        with self._locked(venue_ids=(venue_id,)):
            return [
                b for b in self.bookings.list_by_venue(venue_id)
                if b.status == BookingStatus.CONFIRMED
            ]

    def score(self, venue_id: int, event_id: int) -> CompatibilityResult:
        """
        Raises:
            NotFoundError: venue or event missing
            InvalidInputError: see scoring.score
        """
        venue = self._require_venue(venue_id)
        event = self._require_event(event_id)
        confirmed = self.list_confirmed_for_venue(venue_id)
        return scoring.score(venue, event, confirmed, self._events_for(confirmed))

    def rank(self, event_id: int) -> List[CompatibilityResult]:
        """Scores of every venue for one event, best first."""
        event = self._require_event(event_id)
        bookings = self.bookings.list_all()
        return scoring.rank_venues(event, self.venues.list_venues(), bookings, self._events_for(bookings))

    def unbooked_events(self) -> List[Event]:
        """Events with no PENDING or CONFIRMED booking."""
        booked = {b.event_id for b in self.bookings.list_all() if b.status in ACTIVE_STATUSES}
        return [e for e in self.events.list_events() if e.id not in booked]

    def recommend(self, event_ids: Optional[Iterable[int]] = None) -> List[MatchRecommendation]:
        """
        Auto-match the given events (default: every unbooked event).

        An event that cannot be scored gets a recommendation with no venue and
        the error message as its unmet criterion; the other events are still
        matched.
        """
        if event_ids is None:
            targets = self.unbooked_events()
        else:
            targets = [self._require_event(i) for i in event_ids]
        bookings = self.bookings.list_all()
        venues = self.venues.list_venues()
        events = self._events_for(bookings)

        recs = []
        for event in targets:
            try:
                recs.append(scoring.recommend_venues(event, venues, bookings, events))
            except BookingError as e:
                logger.warning(f"Cannot recommend a venue for event #{event.id}: {e}")
                recs.append(MatchRecommendation(event=event, venue=None, result=None, unmet_criteria=[e.message]))
        return recs
