"""
Unit tests for data models (gigcrm/models/__init__.py).
Pure Python, no DB, no mocking required.
"""

from decimal import Decimal
import pytest
from gigcrm.models import (
    Booking, BookingStatus, Client, CompatibilityResult, Event, Financials,
    Venue, VenueCategory,
)


# ---------------------------------------------------------------------------
# VenueCategory
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('raw, expected', [
    ('INDOOR', VenueCategory.INDOOR),
    ('outdoor', VenueCategory.OUTDOOR),
    ('  Convertible ', VenueCategory.CONVERTIBLE),
])
def test_category_from_string(raw, expected):
    assert VenueCategory.from_string(raw) == expected


def test_category_from_string_unknown_raises():
    with pytest.raises(ValueError, match='rooftop'):
        VenueCategory.from_string('rooftop')


def test_category_from_string_blank_raises():
    with pytest.raises(ValueError):
        VenueCategory.from_string('')


# ---------------------------------------------------------------------------
# Venue
# ---------------------------------------------------------------------------

def test_venue_types_deduplicated_case_insensitively():
    v = Venue(name='Hall', venue_types=['Concert', 'concert', ' Theatre ', 'CONCERT'])
    assert v.venue_types == ['Concert', 'Theatre']


def test_venue_types_drop_blanks():
    v = Venue(name='Hall', venue_types=['', '  ', 'Gig'])
    assert v.venue_types == ['Gig']


def test_venue_price_coerced_to_decimal():
    v = Venue(name='Hall', hire_price_per_hour=99.5)
    assert v.hire_price_per_hour == Decimal('99.5')
    assert isinstance(v.hire_price_per_hour, Decimal)


def test_venue_defaults():
    v = Venue()
    assert v.id is None
    assert v.category == VenueCategory.INDOOR
    assert v.venue_types == []


# ---------------------------------------------------------------------------
# Client / Booking / Event defaults
# ---------------------------------------------------------------------------

def test_client_rate_coerced_to_decimal():
    c = Client(name='Acme', commission_rate=0.12)
    assert c.commission_rate == Decimal('0.12')


def test_client_rate_none_stays_none():
    assert Client(name='Acme').commission_rate is None


def test_booking_default_status_is_pending():
    assert Booking(event_id=1, venue_id=2).status == BookingStatus.PENDING


def test_event_optional_fields_default_to_none():
    e = Event()
    for field in ('id', 'artist', 'event_date', 'start_time', 'client_id'):
        assert getattr(e, field) is None, f"Expected {field} to be None"


def test_status_is_str_enum():
    assert BookingStatus.CONFIRMED == 'CONFIRMED'
    assert BookingStatus('CANCELLED') is BookingStatus.CANCELLED


# ---------------------------------------------------------------------------
# CompatibilityResult
# ---------------------------------------------------------------------------

def _result(available=True, capacity_ok=True, category_ok=True, type_ok=True):
    return CompatibilityResult(1, 2, available, capacity_ok, category_ok, type_ok)


def test_score_all_checks_pass():
    assert _result().score == 100


def test_score_none_pass():
    assert _result(False, False, False, False).score == 0


def test_score_is_25_per_check():
    assert _result(available=False).score == 75
    assert _result(available=False, type_ok=False).score == 50


def test_unmet_criteria_in_check_order():
    r = _result(available=False, capacity_ok=False, category_ok=False, type_ok=False)
    assert r.unmet_criteria == [
        "Venue not available",
        "Insufficient capacity",
        "Event Category mismatch",
        "Venue Type mismatch",
    ]


def test_unmet_criteria_empty_when_perfect():
    assert _result().unmet_criteria == []


def test_result_is_immutable():
    r = _result()
    with pytest.raises(Exception):
        r.available = False


# ---------------------------------------------------------------------------
# Financials
# ---------------------------------------------------------------------------

def test_financials_zero():
    z = Financials.zero()
    assert (z.hire_price, z.commission, z.total) == (0, 0, 0)


def test_financials_rounded_half_up():
    f = Financials(Decimal('10.005'), Decimal('1.0005'), Decimal('11.0055'))
    r = f.rounded()
    assert r.hire_price == Decimal('10.01')
    assert r.commission == Decimal('1.00')
    assert r.total == Decimal('11.01')


def test_financials_add():
    a = Financials(Decimal('100'), Decimal('10'), Decimal('110'))
    b = Financials(Decimal('50'), Decimal('5'), Decimal('55'))
    assert a + b == Financials(Decimal('150'), Decimal('15'), Decimal('165'))
