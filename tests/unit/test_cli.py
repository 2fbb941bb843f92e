"""
Unit tests for gigcrm/cli/main.py.

Mocking strategy:
  - patch gigcrm.cli.main.agency for all facade-level calls
  - patch gigcrm.cli.main.configure_logging (autouse) to prevent file I/O
  - Use click.testing.CliRunner to invoke commands end-to-end
"""

from datetime import date, time
from decimal import Decimal
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gigcrm.cli.main import cli
from gigcrm.engine.errors import (
    AlreadyCancelledError, CapacityExceededError, InvalidInputError, NotFoundError, SchedulingConflictError,
)
from gigcrm.models import (
    Booking, BookingStatus, Client, ClientSummary, CompatibilityResult, Event, Financials,
    MatchRecommendation, Venue, VenueCategory,
)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SAMPLE_VENUE = Venue(
    id=1, name='Town Hall', capacity=1200, hire_price_per_hour=Decimal('1250.5'),
    category=VenueCategory.INDOOR, venue_types=['Concert', 'Theatre'],
)

SAMPLE_EVENT = Event(
    id=4, name='Summer Gala', artist='The Band', event_date=date(2025, 6, 14), start_time=time(19, 0),
    duration_hours=3, required_capacity=150, event_type='Concert', category=VenueCategory.INDOOR, client_id=2,
)

SAMPLE_CLIENT = Client(id=2, name='Acme Events')

SAMPLE_BOOKING = Booking(
    id=9, event_id=4, venue_id=1, client_id=2, booking_date=date(2025, 5, 1),
    status=BookingStatus.CONFIRMED, created_by='staff',
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging():
    """Prevent configure_logging from creating log files during tests."""
    with patch("gigcrm.cli.main.configure_logging"):
        yield


# ---------------------------------------------------------------------------
# venues
# ---------------------------------------------------------------------------

class TestVenues:

    def test_list_empty(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.list_venues.return_value = []
            result = runner.invoke(cli, ["venues", "list"])
        assert result.exit_code == 0
        assert "No venues found" in result.output

    def test_list_formats_money_and_numbers(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.list_venues.return_value = [SAMPLE_VENUE]
            result = runner.invoke(cli, ["venues", "list"])
        assert result.exit_code == 0
        assert "Town Hall" in result.output
        assert "1,200" in result.output
        assert "$1,250.50" in result.output

    def test_show_not_found(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.get_venue.return_value = None
            result = runner.invoke(cli, ["venues", "show", "99"])
        assert result.exit_code == 0
        assert "not found" in result.output

    def test_show_lists_confirmed_bookings(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.get_venue.return_value = SAMPLE_VENUE
            mock_agency.confirmed_bookings.return_value = [SAMPLE_BOOKING]
            mock_agency.get_event.return_value = SAMPLE_EVENT
            result = runner.invoke(cli, ["venues", "show", "1"])
        assert result.exit_code == 0
        assert "Concert, Theatre" in result.output
        assert "14 Jun 2025" in result.output
        assert "07:00 PM" in result.output
        assert "Summer Gala" in result.output

    def test_add_interactive(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.add_venue.side_effect = lambda v: Venue(
                id=3, name=v.name, capacity=v.capacity, hire_price_per_hour=v.hire_price_per_hour,
                category=v.category, venue_types=v.venue_types,
            )
            result = runner.invoke(
                cli, ["venues", "add"],
                input="The Cellar\n80\nabc\n$45.50\noutdoor\nJazz, Folk\n",
            )
        assert result.exit_code == 0
        assert "Invalid amount" in result.output
        assert "Created venue #3: The Cellar" in result.output
        venue = mock_agency.add_venue.call_args[0][0]
        assert venue.hire_price_per_hour == Decimal('45.50')
        assert venue.category == VenueCategory.OUTDOOR
        assert venue.venue_types == ['Jazz', 'Folk']

    def test_delete_with_yes(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.delete_venue.return_value = True
            result = runner.invoke(cli, ["venues", "delete", "1", "--yes"])
        assert result.exit_code == 0
        assert "Deleted venue #1" in result.output
        mock_agency.delete_venue.assert_called_once_with(1)

    def test_delete_aborted(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            result = runner.invoke(cli, ["venues", "delete", "1"], input="n\n")
        assert "Aborted" in result.output
        mock_agency.delete_venue.assert_not_called()

    def test_delete_refused(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.delete_venue.side_effect = InvalidInputError("Venue #1 still has active bookings [9]")
            result = runner.invoke(cli, ["venues", "delete", "1", "--yes"])
        assert result.exit_code == 0
        assert "active bookings" in result.output


# ---------------------------------------------------------------------------
# events
# ---------------------------------------------------------------------------

class TestEvents:

    def test_list(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.list_events.return_value = [SAMPLE_EVENT]
            result = runner.invoke(cli, ["events", "list", "--unbooked"])
        assert result.exit_code == 0
        assert "Summer Gala" in result.output
        mock_agency.list_events.assert_called_once_with(unbooked=True)

    def test_show(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.get_event.return_value = SAMPLE_EVENT
            mock_agency.get_client.return_value = SAMPLE_CLIENT
            result = runner.invoke(cli, ["events", "show", "4"])
        assert result.exit_code == 0
        assert "Acme Events" in result.output
        assert "The Band" in result.output

    def test_show_not_found(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.get_event.return_value = None
            result = runner.invoke(cli, ["events", "show", "4"])
        assert "not found" in result.output


# ---------------------------------------------------------------------------
# match / recommend
# ---------------------------------------------------------------------------

class TestMatching:

    def test_match_shows_scores_and_unmet(self, runner):
        result_obj = CompatibilityResult(1, 4, True, True, False, True)
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.match_event.return_value = [(SAMPLE_VENUE, result_obj)]
            result = runner.invoke(cli, ["match", "4"])
        assert result.exit_code == 0
        assert "75" in result.output
        assert "Event Category mismatch" in result.output

    def test_match_missing_event(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.match_event.side_effect = NotFoundError('event', 4)
            result = runner.invoke(cli, ["match", "4"])
        assert result.exit_code == 0
        assert "Event #4 not found" in result.output

    def test_recommend_book_uses_staff_default(self, runner):
        rec = MatchRecommendation(SAMPLE_EVENT, SAMPLE_VENUE, CompatibilityResult(1, 4, True, True, True, True))
        held = Booking(id=12, event_id=4, venue_id=1, status=BookingStatus.PENDING)
        with patch("gigcrm.cli.main.agency") as mock_agency, \
             patch("gigcrm.cli.main.config") as mock_config:
            mock_config.STAFF_USERNAME = 'staff'
            mock_agency.recommend.return_value = [(rec, held)]
            result = runner.invoke(cli, ["recommend", "--book"])
        assert result.exit_code == 0
        assert "held as booking #12" in result.output
        mock_agency.recommend.assert_called_once_with(book=True, created_by='staff')

    def test_recommend_no_candidate(self, runner):
        rec = MatchRecommendation(SAMPLE_EVENT, None, None, ["No available venue"])
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.recommend.return_value = [(rec, None)]
            result = runner.invoke(cli, ["recommend"])
        assert "No available venue" in result.output

    def test_recommend_error_is_reported(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.recommend.side_effect = InvalidInputError("Duration must be positive, got 0")
            result = runner.invoke(cli, ["recommend"])
        assert result.exit_code == 0
        assert "Error: Duration must be positive, got 0" in result.output


# ---------------------------------------------------------------------------
# bookings
# ---------------------------------------------------------------------------

class TestBookings:

    def test_list_with_financials(self, runner):
        fin = Financials(Decimal('300'), Decimal('30'), Decimal('330'))
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.list_bookings.return_value = [(SAMPLE_BOOKING, SAMPLE_VENUE, SAMPLE_EVENT, fin)]
            result = runner.invoke(cli, ["bookings", "list", "--status", "confirmed"])
        assert result.exit_code == 0
        assert "$330.00" in result.output
        assert "CONFIRMED" in result.output
        mock_agency.list_bookings.assert_called_once_with(status='confirmed')

    def test_create(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.book.return_value = SAMPLE_BOOKING
            result = runner.invoke(cli, ["bookings", "create", "4", "1", "--by", "maria"])
        assert result.exit_code == 0
        assert "Created confirmed booking #9" in result.output
        mock_agency.book.assert_called_once_with(4, 1, 'maria', pending=False)

    @pytest.mark.parametrize('error, text', [
        (CapacityExceededError(300, 500), "holds 300"),
        (SchedulingConflictError(1, [7]), "already booked"),
        (NotFoundError('venue', 1), "Venue #1 not found"),
    ])
    def test_create_rejected(self, runner, error, text):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.book.side_effect = error
            result = runner.invoke(cli, ["bookings", "create", "4", "1"])
        assert result.exit_code == 0
        assert text in result.output

    def test_confirm(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            result = runner.invoke(cli, ["bookings", "confirm", "9"])
        assert "Confirmed booking #9" in result.output
        mock_agency.confirm.assert_called_once_with(9)

    def test_cancel_already_cancelled(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.cancel.side_effect = AlreadyCancelledError(9)
            result = runner.invoke(cli, ["bookings", "cancel", "9"])
        assert result.exit_code == 0
        assert "already cancelled" in result.output

    def test_update_requires_an_option(self, runner):
        with patch("gigcrm.cli.main.agency") as mock_agency:
            result = runner.invoke(cli, ["bookings", "update", "9"])
        assert "No updates specified" in result.output
        mock_agency.update.assert_not_called()

    def test_update_passes_date(self, runner):
        moved = Booking(id=9, event_id=4, venue_id=2, status=BookingStatus.CONFIRMED)
        with patch("gigcrm.cli.main.agency") as mock_agency:
            mock_agency.update.return_value = moved
            result = runner.invoke(cli, ["bookings", "update", "9", "--venue", "2", "--date", "2025-05-03"])
        assert result.exit_code == 0
        assert "venue #2" in result.output
        mock_agency.update.assert_called_once_with(9, venue_id=2, event_id=None, booking_date=date(2025, 5, 3))


# ---------------------------------------------------------------------------
# reports
# ---------------------------------------------------------------------------

def test_clients_summary(runner):
    summary = ClientSummary(SAMPLE_CLIENT, 2, Decimal('500'), Decimal('45'), Decimal('545'))
    with patch("gigcrm.cli.main.agency") as mock_agency:
        mock_agency.client_summaries.return_value = [summary]
        result = runner.invoke(cli, ["clients", "summary"])
    assert result.exit_code == 0
    assert "Acme Events" in result.output
    assert "$545.00" in result.output


def test_utilisation_sorted_busiest_first(runner):
    with patch("gigcrm.cli.main.agency") as mock_agency:
        mock_agency.venue_utilisation.return_value = {'Barn': 1, 'Town Hall': 3}
        result = runner.invoke(cli, ["utilisation"])
    assert result.output.index('Town Hall') < result.output.index('Barn')


def test_utilisation_empty(runner):
    with patch("gigcrm.cli.main.agency") as mock_agency:
        mock_agency.venue_utilisation.return_value = {}
        result = runner.invoke(cli, ["utilisation"])
    assert "No confirmed bookings" in result.output
