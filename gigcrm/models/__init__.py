"""
Data Models
Dataclasses for all entities. These are pure Python objects, no database logic.
Bookings reference venues, events and clients by id only.
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional

CHECK_POINTS = 25
_CENTS = Decimal('0.01')


class VenueCategory(str, Enum):
    """Physical setting of a venue, also requested by events."""
    INDOOR = 'INDOOR'
    OUTDOOR = 'OUTDOOR'
    CONVERTIBLE = 'CONVERTIBLE'

    @classmethod
    def from_string(cls, value: str) -> 'VenueCategory':
        """Parse a category name case-insensitively. Raises ValueError if unknown."""
        cleaned = str(value or '').strip().upper()
        try:
            return cls(cleaned)
        except ValueError:
            raise ValueError(f"Unknown venue category: {value!r}") from None


class BookingStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'


def _unique_types(types) -> List[str]:
    seen = set()
    result = []
    for t in types or []:
        cleaned = str(t).strip()
        key = cleaned.lower()
        if cleaned and key not in seen:
            seen.add(key)
            result.append(cleaned)
    return result


@dataclass
class Venue:
    """Bookable space with capacity, hourly price, category and supported event types"""
    id: Optional[int] = None
    name: str = ''
    capacity: int = 0
    hire_price_per_hour: Decimal = Decimal('0')
    category: VenueCategory = VenueCategory.INDOOR
    venue_types: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.venue_types = _unique_types(self.venue_types)
        if not isinstance(self.hire_price_per_hour, Decimal):
            self.hire_price_per_hour = Decimal(str(self.hire_price_per_hour))


@dataclass
class Event:
    """Requested performance owned by a client"""
    id: Optional[int] = None
    name: str = ''
    artist: Optional[str] = None
    event_date: Optional[date] = None
    start_time: Optional[time] = None
    duration_hours: int = 0
    required_capacity: int = 0
    event_type: str = ''
    category: VenueCategory = VenueCategory.INDOOR
    client_id: Optional[int] = None


@dataclass
class Client:
    """Agency client. commission_rate None means the agency rate applies."""
    id: Optional[int] = None
    name: str = ''
    contact_info: Optional[str] = None
    commission_rate: Optional[Decimal] = None

    def __post_init__(self):
        if self.commission_rate is not None and not isinstance(self.commission_rate, Decimal):
            self.commission_rate = Decimal(str(self.commission_rate))


@dataclass
class Booking:
    """Assignment of an event to a venue for a client"""
    id: Optional[int] = None
    event_id: int = 0
    venue_id: int = 0
    client_id: Optional[int] = None
    booking_date: Optional[date] = None
    status: BookingStatus = BookingStatus.PENDING
    created_by: str = ''


@dataclass(frozen=True)
class CompatibilityResult:
    """Outcome of the four venue/event checks. The score is derived, never stored."""
    venue_id: Optional[int]
    event_id: Optional[int]
    available: bool
    capacity_ok: bool
    category_ok: bool
    type_ok: bool

    @property
    def score(self) -> int:
        flags = (self.available, self.capacity_ok, self.category_ok, self.type_ok)
        return CHECK_POINTS * sum(1 for f in flags if f)

    @property
    def unmet_criteria(self) -> List[str]:
        unmet = []
        if not self.available:
            unmet.append("Venue not available")
        if not self.capacity_ok:
            unmet.append("Insufficient capacity")
        if not self.category_ok:
            unmet.append("Event Category mismatch")
        if not self.type_ok:
            unmet.append("Venue Type mismatch")
        return unmet


@dataclass(frozen=True)
class Financials:
    """Hire price, commission and total at full precision."""
    hire_price: Decimal
    commission: Decimal
    total: Decimal

    @classmethod
    def zero(cls) -> 'Financials':
        return cls(Decimal('0'), Decimal('0'), Decimal('0'))

    def rounded(self) -> 'Financials':
        """Copy rounded to cents for display."""
        return Financials(
            self.hire_price.quantize(_CENTS, rounding=ROUND_HALF_UP),
            self.commission.quantize(_CENTS, rounding=ROUND_HALF_UP),
            self.total.quantize(_CENTS, rounding=ROUND_HALF_UP),
        )

    def __add__(self, other: 'Financials') -> 'Financials':
        return Financials(
            self.hire_price + other.hire_price,
            self.commission + other.commission,
            self.total + other.total,
        )


@dataclass(frozen=True)
class ClientSummary:
    """Confirmed-booking statistics for one client"""
    client: Client
    job_count: int
    total_hire: Decimal
    total_commission: Decimal
    total: Decimal


@dataclass(frozen=True)
class MatchRecommendation:
    """Best venue for an event, or None with the reasons nothing qualified"""
    event: Event
    venue: Optional[Venue]
    result: Optional[CompatibilityResult]
    unmet_criteria: List[str] = field(default_factory=list)
