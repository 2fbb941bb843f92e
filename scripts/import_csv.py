#!/usr/bin/env python3
"""
Gig CRM CSV Importer
Imports venue and event CSV files into the database.

Features:
- Lenient date (25-12-25, 5/03/2025) and time (8PM, 20:00) parsing
- Clients found or created by name
- Fuzzy venue deduplication and exact event deduplication, so a file can be imported again
- Bad rows logged and skipped, never abort the import
- Dry-run mode (in-memory stores, nothing written)
"""

import argparse
import logging
import re
import sys
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
from rapidfuzz import fuzz

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from gigcrm.config import config  # noqa: E402
from gigcrm.db.stores import (  # noqa: E402
    ClientStore, EventStore, VenueStore,
    InMemoryClientStore, InMemoryEventStore, InMemoryVenueStore,
)
from gigcrm.models import Event, Venue, VenueCategory  # noqa: E402

VENUE_COLUMNS = 5   # name, capacity, suitable_for, category, price per hour
EVENT_COLUMNS = 9   # client, title, artist, date, time, duration, audience, event type, category

_TWELVE_HOUR_RE = re.compile(r'^(1[0-2]|[1-9])(AM|PM)$')
_TWENTY_FOUR_HOUR_RE = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)$')

# 25-12-25 / 5-3-25 and 25/12/2025 / 5/03/2025
_DATE_FORMATS = ("%d-%m-%y", "%d/%m/%Y")


# =============================================================================
# FIELD PARSERS
# =============================================================================

def parse_date(raw: str) -> date:
    """Parse day-first dates. Raises ValueError if no format fits."""
    cleaned = str(raw).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date format: {raw!r}")


def parse_time(raw: str) -> time:
    """
    Parse '8PM' / '12AM' style hours or 24-hour 'HH:MM'.
    Raises ValueError otherwise.
    """
    cleaned = str(raw).strip().upper()

    match = _TWELVE_HOUR_RE.match(cleaned)
    if match:
        hour = int(match.group(1)) % 12
        if match.group(2) == 'PM':
            hour += 12
        return time(hour, 0)

    match = _TWENTY_FOUR_HOUR_RE.match(cleaned)
    if match:
        return time(int(match.group(1)), int(match.group(2)))

    raise ValueError(f"Invalid time format: {raw!r}")


def _positive_int(raw: str, field: str) -> int:
    value = int(str(raw).strip())
    if value <= 0:
        raise ValueError(f"{field} must be positive, got {value}")
    return value


def parse_venue_row(values: List[str]) -> Venue:
    """Build a Venue from one CSV row. Raises ValueError on bad data."""
    if len(values) < VENUE_COLUMNS:
        raise ValueError(f"expected {VENUE_COLUMNS} columns, got {len(values)}")

    name = values[0].strip()
    if not name:
        raise ValueError("venue name is blank")
    price = float(values[4].strip())
    if price < 0:
        raise ValueError(f"price must not be negative, got {price}")

    return Venue(
        name=name,
        capacity=_positive_int(values[1], 'capacity'),
        venue_types=values[2].split(';'),
        category=VenueCategory.from_string(values[3]),
        hire_price_per_hour=values[4].strip(),
    )


def parse_event_row(values: List[str], clients: ClientStore) -> Event:
    """Build an Event from one CSV row, finding or creating its client."""
    if len(values) < EVENT_COLUMNS:
        raise ValueError(f"expected {EVENT_COLUMNS} columns, got {len(values)}")

    client_name = values[0].strip()
    title = values[1].strip()
    if not client_name or not title:
        raise ValueError("client and title are required")

    event = Event(
        name=title,
        artist=values[2].strip() or None,
        event_date=parse_date(values[3]),
        start_time=parse_time(values[4]),
        duration_hours=_positive_int(values[5], 'duration'),
        required_capacity=_positive_int(values[6], 'audience'),
        event_type=values[7].strip(),
        category=VenueCategory.from_string(values[8]),
    )
    # Only create the client once the rest of the row is known good
    event.client_id = clients.find_or_create(client_name).id
    return event


def _read_rows(path: Path) -> List[List[str]]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    return [[str(v) for v in row] for row in df.itertuples(index=False, name=None)]


# =============================================================================
# FUZZY VENUE MATCHING
# =============================================================================

def find_duplicate_venue(name: str, venues: List[Venue], threshold: int) -> Optional[Venue]:
    """
    Fuzzy match a venue name against known venues using Levenshtein ratio.
    Returns the best match at or above threshold, else None.
    """
    best_score = 0
    best_match = None

    for venue in venues:
        score = fuzz.ratio(name.lower(), venue.name.lower())
        if score > best_score:
            best_score = score
            best_match = venue

    if best_match is not None and best_score >= threshold:
        logging.info(f"Fuzzy matched '{name}' to venue ID {best_match.id} (score: {best_score:.0f})")
        return best_match
    return None


# =============================================================================
# SHEET IMPORT FUNCTIONS
# =============================================================================

def import_venues(path: Path, venues: VenueStore, threshold: Optional[int] = None) -> Tuple[int, int, int]:
    """
    Import a venues CSV.
    Returns: (created, duplicates, skipped)
    """
    threshold = config.VENUE_DEDUP_THRESHOLD if threshold is None else threshold
    logging.info(f"IMPORTING venues from {path}")

    known = venues.list_venues()
    created = duplicates = skipped = 0

    for line_no, values in enumerate(_read_rows(path), start=2):
        try:
            venue = parse_venue_row(values)
        except ValueError as e:
            logging.warning(f"{path.name}:{line_no} skipped: {e}")
            skipped += 1
            continue

        match = find_duplicate_venue(venue.name, known, threshold)
        if match is not None:
            logging.info(f"Venue exists: {venue.name} - ID {match.id}")
            duplicates += 1
            continue

        saved = venues.save(venue)
        known.append(saved)
        created += 1
        logging.debug(f"Created venue ID {saved.id}: {saved.name}")

    return created, duplicates, skipped


def _event_key(event: Event) -> Tuple:
    return (event.client_id, (event.name or '').strip().lower(), event.event_date, event.start_time)


def import_events(path: Path, events: EventStore, clients: ClientStore) -> Tuple[int, int, int]:
    """
    Import an events CSV. Rows matching a stored event on client, title,
    date and start time are skipped, so the file can be imported again.
    Returns: (created, duplicates, skipped)
    """
    logging.info(f"IMPORTING events from {path}")
    known = {_event_key(e) for e in events.list_events()}
    created = duplicates = skipped = 0

    for line_no, values in enumerate(_read_rows(path), start=2):
        try:
            event = parse_event_row(values, clients)
        except ValueError as e:
            logging.warning(f"{path.name}:{line_no} skipped: {e}")
            skipped += 1
            continue

        key = _event_key(event)
        if key in known:
            logging.info(f"{path.name}:{line_no} duplicate event skipped: {event.name} on {event.event_date}")
            duplicates += 1
            continue

        saved = events.save(event)
        known.add(key)
        created += 1
        logging.debug(f"Created event ID {saved.id}: {saved.name} on {saved.event_date}")

    return created, duplicates, skipped


# =============================================================================
# MAIN IMPORT ORCHESTRATOR
# =============================================================================

def _stores(dry_run: bool):
    if dry_run:
        return InMemoryVenueStore(), InMemoryEventStore(), InMemoryClientStore()
    from gigcrm.db.postgres import PostgresClientStore, PostgresEventStore, PostgresVenueStore
    return PostgresVenueStore(), PostgresEventStore(), PostgresClientStore()


def run_import(
    venues_csv: Optional[Path] = None,
    events_csv: Optional[Path] = None,
    dry_run: bool = False,
    log_level: str = "INFO",
) -> int:
    """Main import function."""

    # Setup logging
    log_file = project_root / "logs" / f"import_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    log_file.parent.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.info("=" * 80)
    logging.info("GIG CRM CSV IMPORT")
    logging.info("=" * 80)
    logging.info(f"Mode: {'DRY-RUN' if dry_run else 'LIVE'}")
    logging.info(f"Log file: {log_file}")
    logging.info("=" * 80)

    stats: Dict[str, int] = {
        'venues_created': 0,
        'venues_duplicate': 0,
        'venues_skipped': 0,
        'events_created': 0,
        'events_duplicate': 0,
        'events_skipped': 0,
        'errors': 0,
    }

    for path in (venues_csv, events_csv):
        if path is not None and not path.exists():
            logging.error(f"CSV file not found: {path}")
            return 1

    venues, events, clients = _stores(dry_run)

    if venues_csv is not None:
        try:
            created, duplicates, skipped = import_venues(venues_csv, venues)
            stats['venues_created'] += created
            stats['venues_duplicate'] += duplicates
            stats['venues_skipped'] += skipped
        except Exception as e:
            logging.error(f"Error importing venues: {e}", exc_info=True)
            stats['errors'] += 1

    if events_csv is not None:
        try:
            created, duplicates, skipped = import_events(events_csv, events, clients)
            stats['events_created'] += created
            stats['events_duplicate'] += duplicates
            stats['events_skipped'] += skipped
        except Exception as e:
            logging.error(f"Error importing events: {e}", exc_info=True)
            stats['errors'] += 1

    # Print summary
    logging.info("=" * 80)
    logging.info("IMPORT COMPLETE")
    logging.info("=" * 80)
    logging.info(f"Venues created: {stats['venues_created']}")
    logging.info(f"Venues skipped (duplicates): {stats['venues_duplicate']}")
    logging.info(f"Venues skipped (bad rows): {stats['venues_skipped']}")
    logging.info(f"Events created: {stats['events_created']}")
    logging.info(f"Events skipped (duplicates): {stats['events_duplicate']}")
    logging.info(f"Events skipped (bad rows): {stats['events_skipped']}")
    logging.info(f"Errors: {stats['errors']}")
    logging.info("=" * 80)

    return 0 if stats['errors'] == 0 else 1


# =============================================================================
# CLI
# =============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Import venue and event CSV files into the Gig CRM database"
    )
    parser.add_argument('--venues', type=Path, help="Venues CSV (name, capacity, suitable_for, category, price)")
    parser.add_argument('--events', type=Path, help="Events CSV (client, title, artist, date, time, ...)")
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help="Parse and deduplicate into memory without writing to the database"
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help="Logging level (default: INFO)"
    )

    args = parser.parse_args()
    if args.venues is None and args.events is None:
        parser.error("give --venues and/or --events")

    sys.exit(run_import(
        venues_csv=args.venues,
        events_csv=args.events,
        dry_run=args.dry_run,
        log_level=args.log_level,
    ))


if __name__ == "__main__":
    main()
