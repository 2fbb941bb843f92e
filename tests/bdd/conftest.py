"""
Shared fixtures and step definitions for BDD tests.

- runner, manager, context: available to all scenario files in this directory
- manager: an in-memory BookingManager installed behind the CLI's agency facade
- no_logging: autouse, prevents log file creation during tests
- venue / event / booking 'Given' steps and the 'the output contains' step:
  shared across all feature files
"""

from datetime import date, time
from decimal import Decimal

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import given, then, parsers

from gigcrm.bus.events import EventBus
from gigcrm.db.stores import (
    InMemoryBookingStore, InMemoryClientStore, InMemoryEventStore, InMemoryVenueStore,
)
from gigcrm.engine import agency
from gigcrm.engine.bookings import BookingManager
from gigcrm.models import Event, Venue


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def manager():
    m = BookingManager(
        InMemoryVenueStore(), InMemoryEventStore(), InMemoryClientStore(), InMemoryBookingStore(),
        event_bus=EventBus(),
    )
    agency.set_manager(m)
    yield m
    agency.set_manager(None)


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {'venues': {}, 'events': {}, 'bookings': {}}


@pytest.fixture(autouse=True)
def no_logging():
    with patch("gigcrm.cli.main.configure_logging"):
        yield


@given(parsers.parse('a venue "{name}" with capacity {capacity:d} at ${price} per hour'))
def a_venue(manager, context, name, capacity, price):
    venue = manager.venues.save(Venue(
        name=name, capacity=capacity, hire_price_per_hour=Decimal(price), venue_types=['Concert'],
    ))
    context['venues'][name] = venue


@given(parsers.parse(
    'an event "{name}" on {day} from {start} for {hours:d} hours needing {seats:d} seats'
))
def an_event(manager, context, name, day, start, hours, seats):
    client = manager.clients.find_or_create('Acme Events')
    event = manager.events.save(Event(
        name=name, event_date=date.fromisoformat(day), start_time=time.fromisoformat(start),
        duration_hours=hours, required_capacity=seats, event_type='Concert', client_id=client.id,
    ))
    context['events'][name] = event


@given(parsers.parse('"{event_name}" is booked into "{venue_name}"'))
def already_booked(manager, context, event_name, venue_name):
    booking = manager.create_confirmed(
        context['events'][event_name].id, context['venues'][venue_name].id, 'staff',
    )
    context['bookings'][event_name] = booking


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )
