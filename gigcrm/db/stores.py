"""
Store interfaces (repository pattern) and an in-memory implementation.

Stores are CRUD only: no business rules. They return model dataclasses and
must be swappable; the booking engine depends on these interfaces, never on
a concrete backend.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional

from gigcrm.models import Booking, BookingStatus, Client, Event, Venue


class VenueStore(ABC):
    """Interface for venue persistence operations."""

    @abstractmethod
    def get_venue(self, venue_id: int) -> Optional[Venue]:
        """Return a venue by ID, or None if not found."""
        ...

    @abstractmethod
    def list_venues(self) -> List[Venue]:
        """Return all venues ordered by id."""
        ...

    @abstractmethod
    def save(self, venue: Venue) -> Venue:
        """Insert (id None) or update a venue. Returns the stored venue."""
        ...

    @abstractmethod
    def delete(self, venue_id: int) -> bool:
        """Delete a venue. Returns False if it did not exist."""
        ...


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def get_event(self, event_id: int) -> Optional[Event]:
        ...

    @abstractmethod
    def list_events(self) -> List[Event]:
        """Return all events ordered by date, then start time."""
        ...

    @abstractmethod
    def save(self, event: Event) -> Event:
        ...


class ClientStore(ABC):
    """Interface for client persistence operations."""

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        ...

    @abstractmethod
    def find_or_create(self, name: str) -> Client:
        """Return the client with this exact name, creating it if needed."""
        ...

    @abstractmethod
    def list_clients(self) -> List[Client]:
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def save(self, booking: Booking) -> Booking:
        """Insert (id None) or replace a booking. Returns the stored booking."""
        ...

    @abstractmethod
    def get_booking(self, booking_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    def list_by_venue(self, venue_id: int) -> List[Booking]:
        ...

    @abstractmethod
    def list_all(self) -> List[Booking]:
        ...

    @abstractmethod
    def update_status(self, booking_id: int, status: BookingStatus) -> bool:
        """Set a booking's status. Returns False if it did not exist."""
        ...


# =============================================================================
# IN-MEMORY IMPLEMENTATION
# =============================================================================

class _Arena:
    """Id-keyed records with sequential ids. Stored and returned values are copies."""

    def __init__(self):
        self._rows: Dict[int, object] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def get(self, record_id):
        with self._lock:
            row = self._rows.get(record_id)
            return replace(row) if row is not None else None

    def values(self) -> list:
        with self._lock:
            return [replace(self._rows[k]) for k in sorted(self._rows)]

    def save(self, record):
        with self._lock:
            if record.id is None:
                record = replace(record, id=self._next_id)
            self._next_id = max(self._next_id, record.id + 1)
            self._rows[record.id] = replace(record)
            return replace(record)

    def delete(self, record_id) -> bool:
        with self._lock:
            return self._rows.pop(record_id, None) is not None


class InMemoryVenueStore(VenueStore):

    def __init__(self):
        self._arena = _Arena()

    def get_venue(self, venue_id: int) -> Optional[Venue]:
        return self._arena.get(venue_id)

    def list_venues(self) -> List[Venue]:
        return self._arena.values()

    def save(self, venue: Venue) -> Venue:
        return self._arena.save(venue)

    def delete(self, venue_id: int) -> bool:
        return self._arena.delete(venue_id)


class InMemoryEventStore(EventStore):

    def __init__(self):
        self._arena = _Arena()

    def get_event(self, event_id: int) -> Optional[Event]:
        return self._arena.get(event_id)

    def list_events(self) -> List[Event]:
        return sorted(
            self._arena.values(),
            key=lambda e: (e.event_date is None, e.event_date, e.start_time is None, e.start_time, e.id),
        )

    def save(self, event: Event) -> Event:
        return self._arena.save(event)


class InMemoryClientStore(ClientStore):

    def __init__(self):
        self._arena = _Arena()
        self._create_lock = threading.Lock()

    def get_client(self, client_id: int) -> Optional[Client]:
        return self._arena.get(client_id)

    def find_or_create(self, name: str) -> Client:
        with self._create_lock:
            for client in self._arena.values():
                if client.name == name:
                    return client
            return self._arena.save(Client(name=name))

    def list_clients(self) -> List[Client]:
        return self._arena.values()

    def save(self, client: Client) -> Client:
        return self._arena.save(client)


class InMemoryBookingStore(BookingStore):

    def __init__(self):
        self._arena = _Arena()

    def save(self, booking: Booking) -> Booking:
        return self._arena.save(booking)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self._arena.get(booking_id)

    def list_by_venue(self, venue_id: int) -> List[Booking]:
        return [b for b in self._arena.values() if b.venue_id == venue_id]

    def list_all(self) -> List[Booking]:
        return self._arena.values()

    def update_status(self, booking_id: int, status: BookingStatus) -> bool:
        booking = self._arena.get(booking_id)
        if booking is None:
            return False
        self._arena.save(replace(booking, status=status))
        return True
