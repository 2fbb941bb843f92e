"""
PostgreSQL Stores
Store implementations backed by the tables in schema.sql.
CRUD only: all booking rules live in the engine.
"""

import logging
from typing import List, Optional

from gigcrm.db.connection import get_db_cursor
from gigcrm.db.stores import BookingStore, ClientStore, EventStore, VenueStore
from gigcrm.models import Booking, BookingStatus, Client, Event, Venue, VenueCategory

logger = logging.getLogger(__name__)


# =============================================================================
# ROW CONVERSION
# =============================================================================

def venue_from_row(row) -> Venue:
    return Venue(
        id=row['id'],
        name=row['name'],
        capacity=row['capacity'],
        hire_price_per_hour=row['hire_price_per_hour'],
        category=VenueCategory(row['category']),
        venue_types=list(row['venue_types'] or []),
    )


def event_from_row(row) -> Event:
    return Event(
        id=row['id'],
        name=row['name'],
        artist=row['artist'],
        event_date=row['event_date'],
        start_time=row['start_time'],
        duration_hours=row['duration_hours'],
        required_capacity=row['required_capacity'],
        event_type=row['event_type'],
        category=VenueCategory(row['category']),
        client_id=row['client_id'],
    )


def client_from_row(row) -> Client:
    return Client(**row)


def booking_from_row(row) -> Booking:
    return Booking(
        id=row['id'],
        event_id=row['event_id'],
        venue_id=row['venue_id'],
        client_id=row['client_id'],
        booking_date=row['booking_date'],
        status=BookingStatus(row['status']),
        created_by=row['created_by'],
    )


# =============================================================================
# VENUES
# =============================================================================

class PostgresVenueStore(VenueStore):

    def get_venue(self, venue_id: int) -> Optional[Venue]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM venues WHERE id = %s", (venue_id,))
            row = cur.fetchone()
            if row:
                return venue_from_row(row)
            logger.debug(f"get_venue: venue_id={venue_id} not found")
            return None

    def list_venues(self) -> List[Venue]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM venues ORDER BY id")
            return [venue_from_row(row) for row in cur.fetchall()]

    def save(self, venue: Venue) -> Venue:
        params = {
            'id': venue.id,
            'name': venue.name,
            'capacity': venue.capacity,
            'hire_price_per_hour': venue.hire_price_per_hour,
            'category': venue.category.value,
            'venue_types': list(venue.venue_types),
        }
        with get_db_cursor() as cur:
            if venue.id is None:
                cur.execute("""
                    INSERT INTO venues (name, capacity, hire_price_per_hour, category, venue_types)
                    VALUES (%(name)s, %(capacity)s, %(hire_price_per_hour)s, %(category)s, %(venue_types)s)
                    RETURNING *
                """, params)
            else:
                cur.execute("""
                    UPDATE venues
                    SET name = %(name)s, capacity = %(capacity)s,
                        hire_price_per_hour = %(hire_price_per_hour)s,
                        category = %(category)s, venue_types = %(venue_types)s
                    WHERE id = %(id)s
                    RETURNING *
                """, params)
            row = cur.fetchone()

        if row is None:
            raise ValueError(f"Venue #{venue.id} does not exist")
        saved = venue_from_row(row)
        logger.info(f"Saved venue ID {saved.id}: {saved.name}")
        return saved

    def delete(self, venue_id: int) -> bool:
        with get_db_cursor() as cur:
            cur.execute("DELETE FROM venues WHERE id = %s", (venue_id,))
            if cur.rowcount > 0:
                logger.info(f"Deleted venue ID {venue_id}")
                return True
            return False


# =============================================================================
# EVENTS
# =============================================================================

class PostgresEventStore(EventStore):

    def get_event(self, event_id: int) -> Optional[Event]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM events WHERE id = %s", (event_id,))
            row = cur.fetchone()
            if row:
                return event_from_row(row)
            logger.debug(f"get_event: event_id={event_id} not found")
            return None

    def list_events(self) -> List[Event]:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT * FROM events
                ORDER BY event_date NULLS LAST, start_time NULLS LAST, id
            """)
            return [event_from_row(row) for row in cur.fetchall()]

    def save(self, event: Event) -> Event:
        params = {
            'id': event.id,
            'name': event.name,
            'artist': event.artist,
            'event_date': event.event_date,
            'start_time': event.start_time,
            'duration_hours': event.duration_hours,
            'required_capacity': event.required_capacity,
            'event_type': event.event_type,
            'category': event.category.value,
            'client_id': event.client_id,
        }
        with get_db_cursor() as cur:
            if event.id is None:
                cur.execute("""
                    INSERT INTO events (
                        name, artist, event_date, start_time, duration_hours,
                        required_capacity, event_type, category, client_id
                    ) VALUES (
                        %(name)s, %(artist)s, %(event_date)s, %(start_time)s, %(duration_hours)s,
                        %(required_capacity)s, %(event_type)s, %(category)s, %(client_id)s
                    ) RETURNING *
                """, params)
            else:
                cur.execute("""
                    UPDATE events
                    SET name = %(name)s, artist = %(artist)s, event_date = %(event_date)s,
                        start_time = %(start_time)s, duration_hours = %(duration_hours)s,
                        required_capacity = %(required_capacity)s, event_type = %(event_type)s,
                        category = %(category)s, client_id = %(client_id)s
                    WHERE id = %(id)s
                    RETURNING *
                """, params)
            row = cur.fetchone()

        if row is None:
            raise ValueError(f"Event #{event.id} does not exist")
        saved = event_from_row(row)
        logger.info(f"Saved event ID {saved.id}: {saved.name}")
        return saved


# =============================================================================
# CLIENTS
# =============================================================================

class PostgresClientStore(ClientStore):

    def get_client(self, client_id: int) -> Optional[Client]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM clients WHERE id = %s", (client_id,))
            row = cur.fetchone()
            if row:
                return client_from_row(row)
            logger.debug(f"get_client: client_id={client_id} not found")
            return None

    def find_or_create(self, name: str) -> Client:
        # ON CONFLICT keeps concurrent imports from creating duplicates
        with get_db_cursor() as cur:
            cur.execute("""
                INSERT INTO clients (name) VALUES (%s)
                ON CONFLICT (name) DO NOTHING
                RETURNING *
            """, (name,))
            row = cur.fetchone()
            if row:
                logger.info(f"Created client ID {row['id']}: {name}")
            else:
                cur.execute("SELECT * FROM clients WHERE name = %s", (name,))
                row = cur.fetchone()
            return client_from_row(row)

    def list_clients(self) -> List[Client]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM clients ORDER BY name")
            return [client_from_row(row) for row in cur.fetchall()]


# =============================================================================
# BOOKINGS
# =============================================================================

class PostgresBookingStore(BookingStore):

    def save(self, booking: Booking) -> Booking:
        params = {
            'id': booking.id,
            'event_id': booking.event_id,
            'venue_id': booking.venue_id,
            'client_id': booking.client_id,
            'booking_date': booking.booking_date,
            'status': booking.status.value,
            'created_by': booking.created_by,
        }
        with get_db_cursor() as cur:
            if booking.id is None:
                cur.execute("""
                    INSERT INTO bookings (event_id, venue_id, client_id, booking_date, status, created_by)
                    VALUES (%(event_id)s, %(venue_id)s, %(client_id)s, %(booking_date)s, %(status)s, %(created_by)s)
                    RETURNING *
                """, params)
            else:
                cur.execute("""
                    UPDATE bookings
                    SET event_id = %(event_id)s, venue_id = %(venue_id)s, client_id = %(client_id)s,
                        booking_date = %(booking_date)s, status = %(status)s, created_by = %(created_by)s
                    WHERE id = %(id)s
                    RETURNING *
                """, params)
            row = cur.fetchone()

        if row is None:
            raise ValueError(f"Booking #{booking.id} does not exist")
        return booking_from_row(row)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM bookings WHERE id = %s", (booking_id,))
            row = cur.fetchone()
            if row:
                return booking_from_row(row)
            logger.debug(f"get_booking: booking_id={booking_id} not found")
            return None

    def list_by_venue(self, venue_id: int) -> List[Booking]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM bookings WHERE venue_id = %s ORDER BY id", (venue_id,))
            return [booking_from_row(row) for row in cur.fetchall()]

    def list_all(self) -> List[Booking]:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM bookings ORDER BY id")
            return [booking_from_row(row) for row in cur.fetchall()]

    def update_status(self, booking_id: int, status: BookingStatus) -> bool:
        with get_db_cursor() as cur:
            cur.execute("UPDATE bookings SET status = %s WHERE id = %s", (status.value, booking_id))
            return cur.rowcount > 0
