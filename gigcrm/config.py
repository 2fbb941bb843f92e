"""
Gig CRM Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _rate(name: str, default: str) -> Decimal:
    """Read a commission rate fraction, rejecting anything outside [0, 1]."""
    value = Decimal(os.getenv(name, default))
    if not Decimal('0') <= value <= Decimal('1'):
        _logger.critical(f"{name}={value} is outside [0, 1]")
        raise ValueError(f"{name} must be a fraction between 0 and 1, got {value}")
    return value


class Config:
    """Application configuration."""

    # Database: only needed once a PostgreSQL connection is opened
    DATABASE_URL = os.getenv('DATABASE_URL')
    if not DATABASE_URL:
        _logger.warning("DATABASE_URL is not set; PostgreSQL stores will be unavailable.")

    # Agency commission (fractions of the hire price)
    DEFAULT_COMMISSION_RATE = _rate('DEFAULT_COMMISSION_RATE', '0.10')
    LOYALTY_COMMISSION_RATE = _rate('LOYALTY_COMMISSION_RATE', '0.09')
    # Clients with more confirmed jobs than this get the loyalty rate
    LOYALTY_JOB_THRESHOLD = int(os.getenv('LOYALTY_JOB_THRESHOLD', '1'))

    # Recorded as created_by on bookings made from the CLI
    STAFF_USERNAME = os.getenv('STAFF_USERNAME', 'staff')

    # CSV import: venues scoring at or above this fuzzy ratio are duplicates
    VENUE_DEDUP_THRESHOLD = int(os.getenv('VENUE_DEDUP_THRESHOLD', '90'))


# Singleton instance
config = Config()
