#!/usr/bin/env python3
"""
Gig CRM Terminal CLI
Command-line interface for venue matching and booking operations.
"""

import logging
import click
from decimal import Decimal, InvalidOperation

from gigcrm.config import config
from gigcrm.engine import agency
from gigcrm.engine.errors import BookingError
from gigcrm.engine.money import format_currency, format_date, format_number, format_time
from gigcrm.models import Venue, VenueCategory
from gigcrm.logging_config import configure_logging, log_call, log_rejection

CATEGORY_CHOICES = [c.value for c in VenueCategory]


def _fail(command: str, error: BookingError) -> None:
    """Report a rejected request: warning in the log, message on stderr."""
    log_rejection(command, error)
    click.echo(f"Error: {error.message}", err=True)


@log_call
def _prompt_price(label: str) -> Decimal:
    """Prompt for a non-negative amount, re-prompting on bad input."""
    logger = logging.getLogger("gigcrm.cli")
    while True:
        raw = click.prompt(label, type=str)
        try:
            value = Decimal(raw.replace('$', '').replace(',', '').strip())
        except InvalidOperation:
            value = None
        if value is not None and value >= 0:
            return value
        logger.debug(f"_prompt_price | rejected input={raw!r}")
        click.echo("  Invalid amount - please enter a number like 120 or 99.50.", err=True)


@click.group()
def cli():
    """Gig CRM - Venue Matching & Booking"""
    configure_logging()


# =============================================================================
# VENUES COMMANDS
# =============================================================================

@cli.group()
def venues():
    """Manage venues"""
    pass


@venues.command('list')
@log_call
def venues_list():
    """List all venues"""
    results = agency.list_venues()

    if not results:
        click.echo("No venues found.")
        return

    click.echo(f"\nFound {len(results)} venues:\n")
    click.echo(f"{'ID':<6} {'Name':<30} {'Capacity':>9} {'Category':<12} {'Price/h':>12}")
    click.echo("-" * 75)

    for v in results:
        click.echo(
            f"{v.id:<6} {v.name[:28]:<30} {format_number(v.capacity):>9} "
            f"{v.category.value:<12} {format_currency(v.hire_price_per_hour):>12}"
        )


@venues.command('show')
@click.argument('venue_id', type=int)
@log_call
def venues_show(venue_id):
    """Show venue details and confirmed bookings"""
    logger = logging.getLogger("gigcrm.cli")
    venue = agency.get_venue(venue_id)

    if not venue:
        logger.warning(f"venues_show | venue_id={venue_id} not found")
        click.echo(f"Venue ID {venue_id} not found.", err=True)
        return

    click.echo(f"\n{'='*80}")
    click.echo(f"VENUE #{venue.id}: {venue.name}")
    click.echo(f"{'='*80}")
    click.echo(f"Capacity:    {format_number(venue.capacity)}")
    click.echo(f"Category:    {venue.category.value}")
    click.echo(f"Price/hour:  {format_currency(venue.hire_price_per_hour)}")
    click.echo(f"Suitable:    {', '.join(venue.venue_types) or '(not set)'}")

    click.echo(f"\n{'='*80}")
    click.echo("CONFIRMED BOOKINGS")
    click.echo(f"{'='*80}")

    confirmed = agency.confirmed_bookings(venue_id)
    if confirmed:
        for b in confirmed:
            event = agency.get_event(b.event_id)
            if event is None:
                click.echo(f"  #{b.id} event #{b.event_id} (missing)")
                continue
            click.echo(
                f"  #{b.id} {format_date(event.event_date)} {format_time(event.start_time)} "
                f"({event.duration_hours}h) {event.name}"
            )
    else:
        click.echo("No confirmed bookings.")

    click.echo()


@venues.command('add')
@log_call
def venues_add():
    """Add a new venue (interactive)"""
    click.echo("\n=== ADD NEW VENUE ===\n")

    name = click.prompt("Name", type=str)
    capacity = click.prompt("Capacity", type=click.IntRange(min=1))
    price = _prompt_price("Hire price per hour")
    category = click.prompt(
        "Category",
        type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
        default=VenueCategory.INDOOR.value,
    )
    types = click.prompt("Suitable for (comma-separated, e.g. Concert, Theatre)", default="", show_default=False)

    venue = Venue(
        name=name,
        capacity=capacity,
        hire_price_per_hour=price,
        category=VenueCategory.from_string(category),
        venue_types=[t for t in types.split(',')],
    )

    try:
        saved = agency.add_venue(venue)
    except BookingError as e:
        _fail("venues_add", e)
        return
    click.echo(f"\n✓ Created venue #{saved.id}: {saved.name}")


@venues.command('delete')
@click.argument('venue_id', type=int)
@click.option('--yes', is_flag=True, help='Skip confirmation prompt')
@log_call
def venues_delete(venue_id, yes):
    """Delete a venue without active bookings"""
    if not yes and not click.confirm(f"Delete venue #{venue_id}?"):
        click.echo("Aborted.")
        return

    try:
        agency.delete_venue(venue_id)
    except BookingError as e:
        _fail("venues_delete", e)
        return
    click.echo(f"✓ Deleted venue #{venue_id}")


# =============================================================================
# EVENTS COMMANDS
# =============================================================================

@cli.group()
def events():
    """Browse requested events"""
    pass


@events.command('list')
@click.option('--unbooked', is_flag=True, help='Only events without a pending or confirmed booking')
@log_call
def events_list(unbooked):
    """List events by date"""
    results = agency.list_events(unbooked=unbooked)

    if not results:
        click.echo("No events found.")
        return

    click.echo(f"\nFound {len(results)} events:\n")
    click.echo(f"{'ID':<6} {'Name':<30} {'Date':<12} {'Start':<9} {'Hours':>5} {'Audience':>9} {'Type':<12}")
    click.echo("-" * 90)

    for e in results:
        click.echo(
            f"{e.id:<6} {e.name[:28]:<30} {format_date(e.event_date):<12} "
            f"{format_time(e.start_time):<9} {e.duration_hours:>5} "
            f"{format_number(e.required_capacity):>9} {e.event_type[:12]:<12}"
        )


@events.command('show')
@click.argument('event_id', type=int)
@log_call
def events_show(event_id):
    """Show full event details"""
    logger = logging.getLogger("gigcrm.cli")
    event = agency.get_event(event_id)

    if not event:
        logger.warning(f"events_show | event_id={event_id} not found")
        click.echo(f"Event ID {event_id} not found.", err=True)
        return

    client = agency.get_client(event.client_id) if event.client_id is not None else None

    click.echo(f"\n{'='*80}")
    click.echo(f"EVENT #{event.id}: {event.name}")
    click.echo(f"{'='*80}")
    click.echo(f"Artist:      {event.artist or '(not set)'}")
    click.echo(f"Client:      {client.name if client else '(not set)'}")
    click.echo(f"Date:        {format_date(event.event_date)}")
    click.echo(f"Start:       {format_time(event.start_time)}")
    click.echo(f"Duration:    {event.duration_hours}h")
    click.echo(f"Audience:    {format_number(event.required_capacity)}")
    click.echo(f"Type:        {event.event_type or '(not set)'}")
    click.echo(f"Category:    {event.category.value}")
    click.echo()


# =============================================================================
# MATCHING COMMANDS
# =============================================================================

@cli.command('match')
@click.argument('event_id', type=int)
@click.option('--limit', default=10, help='Max venues to show (default: 10)')
@log_call
def match(event_id, limit):
    """Score every venue for an event, best first"""
    try:
        ranked = agency.match_event(event_id)
    except BookingError as e:
        _fail("match", e)
        return

    if not ranked:
        click.echo("No venues found.")
        return

    click.echo(f"\n{'ID':<6} {'Venue':<30} {'Score':>5}  Unmet")
    click.echo("-" * 80)
    for venue, result in ranked[:limit]:
        unmet = ', '.join(result.unmet_criteria) or '-'
        click.echo(f"{venue.id:<6} {venue.name[:28]:<30} {result.score:>5}  {unmet}")


@cli.command('recommend')
@click.option('--book', is_flag=True, help='Hold each recommendation as a pending booking')
@click.option('--by', 'created_by', default=None, help='Staff name recorded on bookings')
@log_call
def recommend(book, created_by):
    """Recommend the best venue for every unbooked event"""
    try:
        results = agency.recommend(book=book, created_by=created_by or config.STAFF_USERNAME)
    except BookingError as e:
        _fail("recommend", e)
        return

    if not results:
        click.echo("No unbooked events.")
        return

    for rec, booking in results:
        if rec.venue is None:
            click.echo(f"Event #{rec.event.id} {rec.event.name}: {'; '.join(rec.unmet_criteria)}")
            continue
        line = f"Event #{rec.event.id} {rec.event.name} -> venue #{rec.venue.id} {rec.venue.name} ({rec.result.score})"
        if booking is not None:
            line += f" [held as booking #{booking.id}]"
        click.echo(line)


# =============================================================================
# BOOKINGS COMMANDS
# =============================================================================

@cli.group()
def bookings():
    """Create and manage bookings"""
    pass


@bookings.command('list')
@click.option('--status', type=click.Choice(['pending', 'confirmed', 'cancelled'], case_sensitive=False),
              help='Filter by status')
@log_call
def bookings_list(status):
    """List bookings with their financials"""
    rows = agency.list_bookings(status=status)

    if not rows:
        click.echo("No bookings found.")
        return

    click.echo(f"\nFound {len(rows)} bookings:\n")
    click.echo(
        f"{'ID':<6} {'Event':<24} {'Venue':<20} {'Date':<12} {'Status':<10} "
        f"{'Hire':>11} {'Commission':>11} {'Total':>11}"
    )
    click.echo("-" * 110)

    for b, venue, event, fin in rows:
        click.echo(
            f"{b.id:<6} {(event.name if event else '?')[:22]:<24} "
            f"{(venue.name if venue else '?')[:18]:<20} "
            f"{format_date(event.event_date if event else None):<12} {b.status.value:<10} "
            f"{format_currency(fin.hire_price):>11} {format_currency(fin.commission):>11} "
            f"{format_currency(fin.total):>11}"
        )


@bookings.command('create')
@click.argument('event_id', type=int)
@click.argument('venue_id', type=int)
@click.option('--pending', is_flag=True, help='Hold as pending instead of confirming')
@click.option('--by', 'created_by', default=None, help='Staff name recorded on the booking')
@log_call
def bookings_create(event_id, venue_id, pending, created_by):
    """Book an event into a venue"""
    try:
        booking = agency.book(event_id, venue_id, created_by or config.STAFF_USERNAME, pending=pending)
    except BookingError as e:
        _fail("bookings_create", e)
        return
    click.echo(f"✓ Created {booking.status.value.lower()} booking #{booking.id}")


@bookings.command('confirm')
@click.argument('booking_id', type=int)
@log_call
def bookings_confirm(booking_id):
    """Confirm a pending booking"""
    try:
        agency.confirm(booking_id)
    except BookingError as e:
        _fail("bookings_confirm", e)
        return
    click.echo(f"✓ Confirmed booking #{booking_id}")


@bookings.command('cancel')
@click.argument('booking_id', type=int)
@log_call
def bookings_cancel(booking_id):
    """Cancel a booking"""
    try:
        agency.cancel(booking_id)
    except BookingError as e:
        _fail("bookings_cancel", e)
        return
    click.echo(f"✓ Cancelled booking #{booking_id}")


@bookings.command('update')
@click.argument('booking_id', type=int)
@click.option('--venue', 'venue_id', type=int, help='Move to this venue')
@click.option('--event', 'event_id', type=int, help='Switch to this event')
@click.option('--date', 'booking_date', type=click.DateTime(formats=['%Y-%m-%d']),
              help='Booking date (YYYY-MM-DD, default: today)')
@log_call
def bookings_update(booking_id, venue_id, event_id, booking_date):
    """Move a booking to another venue and/or event"""
    if venue_id is None and event_id is None:
        click.echo("No updates specified. Use --venue or --event", err=True)
        return

    try:
        booking = agency.update(
            booking_id,
            venue_id=venue_id,
            event_id=event_id,
            booking_date=booking_date.date() if booking_date else None,
        )
    except BookingError as e:
        _fail("bookings_update", e)
        return
    click.echo(f"✓ Updated booking #{booking.id}: event #{booking.event_id} at venue #{booking.venue_id}")


# =============================================================================
# REPORTS
# =============================================================================

@cli.group()
def clients():
    """Client reports"""
    pass


@clients.command('summary')
@log_call
def clients_summary():
    """Confirmed jobs and totals per client"""
    summaries = agency.client_summaries()

    if not summaries:
        click.echo("No clients found.")
        return

    click.echo(f"\n{'Client':<30} {'Jobs':>5} {'Hire':>12} {'Commission':>12} {'Total':>12}")
    click.echo("-" * 75)
    for s in summaries:
        click.echo(
            f"{s.client.name[:28]:<30} {s.job_count:>5} {format_currency(s.total_hire):>12} "
            f"{format_currency(s.total_commission):>12} {format_currency(s.total):>12}"
        )


@cli.command('utilisation')
@log_call
def utilisation():
    """Confirmed bookings per venue"""
    counts = agency.venue_utilisation()

    if not counts:
        click.echo("No confirmed bookings.")
        return

    for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
        click.echo(f"{name[:40]:<42} {n:>4}")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == '__main__':
    cli()
