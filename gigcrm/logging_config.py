"""
Logging for gigcrm.

Modules log through logging.getLogger(__name__), so their records propagate
to the 'gigcrm' logger set up here and land in one file:

  gigcrm.engine.*  INFO    bookings created, confirmed, cancelled, moved
                   WARNING requests refused (capacity, conflicts, double cancel)
  gigcrm.cli       CALL / OK / REJECT / FAIL lines around each command
  gigcrm.db.*      connections, rollbacks

  Log file : $LOG_DIR/gigcrm.log (LOG_DIR defaults to ./logs in the repo)
  Rotation : 5 MB x 3 backups
  Level    : LOG_LEVEL env var, INFO when unset or not a level name

A refused booking is normal business, not a crash: log_call and
log_rejection record BookingError at WARNING with its error code, and keep
ERROR for unexpected exceptions.

    2026-05-02 10:14:09 | INFO     | gigcrm.engine.bookings | Created CONFIRMED booking #12: event #3 at venue #7 ...
    2026-05-02 10:14:11 | WARNING  | gigcrm.cli | REJECT bookings_create | SCHEDULING_CONFLICT: Venue #7 is already booked ...
    2026-05-02 10:14:11 | INFO     | gigcrm.cli | OK   bookings_create | 4ms
"""

import functools
import logging
import logging.handlers
import os
import time
from pathlib import Path

from gigcrm.engine.errors import BookingError

ROOT_LOGGER = "gigcrm"
CLI_LOGGER = "gigcrm.cli"
LOG_FILE_NAME = "gigcrm.log"

_DEFAULT_LOG_DIR = Path(__file__).parent.parent / "logs"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3


def log_path() -> Path:
    return Path(os.environ.get("LOG_DIR") or _DEFAULT_LOG_DIR) / LOG_FILE_NAME


def _level_from_env() -> int:
    # getLevelName maps known names to ints and anything else to a string
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> logging.Logger:
    """
    Attach the rotating file handler to the 'gigcrm' logger.
    Called on every CLI entry; a logger that already has handlers is left alone.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if logger.handlers:
        return logger

    path = log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.setLevel(_level_from_env())

    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)
    logger.debug(f"Logging to {path}")
    return logger


def log_rejection(command: str, error: BookingError, ms: int = None) -> None:
    """WARNING line for a request the engine refused."""
    timing = f" | {ms}ms" if ms is not None else ""
    logging.getLogger(CLI_LOGGER).warning(
        f"REJECT {command} | {error.code.value}: {error.message}{timing}"
    )


def _describe_args(args, kwargs) -> str:
    parts = [repr(a) for a in args] + [f"{k}={v!r}" for k, v in kwargs.items()]
    return ", ".join(parts) or "-"


def log_call(func):
    """
    Trace a command on the gigcrm.cli logger.

    DEBUG CALL with the arguments, INFO OK with the elapsed time.
    BookingError -> WARNING REJECT, any other exception -> ERROR FAIL;
    both are re-raised.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(CLI_LOGGER)
        name = func.__name__
        start = time.perf_counter()
        logger.debug(f"CALL {name} | args=({_describe_args(args, kwargs)})")

        try:
            result = func(*args, **kwargs)
        except BookingError as exc:
            log_rejection(name, exc, int((time.perf_counter() - start) * 1000))
            raise
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        logger.info(f"OK   {name} | {int((time.perf_counter() - start) * 1000)}ms")
        return result

    return wrapper
