"""
PostgreSQL access for the gigcrm stores.

Each store call is one unit of work: get_db_cursor() opens a connection,
hands out a RealDictCursor (rows come back as dicts for the *_from_row
converters), commits when the block exits cleanly and rolls back otherwise.
"""

import logging
from contextlib import contextmanager
from urllib.parse import urlsplit, urlunsplit

import psycopg2
from psycopg2.extras import RealDictCursor

from gigcrm.config import config

logger = logging.getLogger(__name__)

# Shows up in pg_stat_activity
APPLICATION_NAME = "gigcrm"


def redact_url(url: str) -> str:
    """Connection URL with the password masked, for log lines."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


@contextmanager
def get_db_connection():
    """
    Yield a connection to DATABASE_URL inside one transaction.

    Raises:
        ValueError: DATABASE_URL is not configured
        psycopg2.OperationalError: the server cannot be reached
    """
    url = config.DATABASE_URL
    if not url:
        logger.critical("DATABASE_URL is not set; the PostgreSQL stores cannot be used")
        raise ValueError("DATABASE_URL environment variable is not set. Copy .env.example to .env and configure it.")

    try:
        conn = psycopg2.connect(url, application_name=APPLICATION_NAME)
    except psycopg2.OperationalError as e:
        logger.critical(f"Cannot connect to {redact_url(url)}: {e}")
        raise
    logger.debug(f"Connected to {redact_url(url)}")

    try:
        yield conn
    except Exception as e:
        conn.rollback()
        logger.warning(f"Rolled back: {type(e).__name__}: {e}")
        raise
    else:
        conn.commit()
    finally:
        conn.close()


@contextmanager
def get_db_cursor():
    """RealDictCursor on a fresh connection; closed with the transaction."""
    with get_db_connection() as conn:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
