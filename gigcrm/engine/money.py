"""
Display helpers for money, quantities, dates and times.
Pure functions; rounding here is for display only.
"""

from datetime import date, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float]

_CENTS = Decimal('0.01')


def to_decimal(value: Number) -> Decimal:
    """Convert without picking up binary float noise (0.1 -> Decimal('0.1'))."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    """Round half-up to cents."""
    return to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_currency(value: Number) -> str:
    """1234.56 -> '$1,234.56', -5 -> '-$5.00'"""
    amount = round_money(value)
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"


def format_number(value: int) -> str:
    """1234567 -> '1,234,567'"""
    return f"{value:,}"


def format_date(value: Optional[date]) -> str:
    """date(2025, 12, 25) -> '25 Dec 2025', None -> 'N/A'"""
    return value.strftime('%d %b %Y') if value is not None else 'N/A'


def format_time(value: Optional[time]) -> str:
    """time(20, 30) -> '08:30 PM', None -> 'N/A'"""
    return value.strftime('%I:%M %p') if value is not None else 'N/A'
