"""Conversion between Unix time and the chat store's native timestamps.

The store keeps message dates as a signed integer count of nanoseconds
since 2001-01-01T00:00:00Z.  Everything outside the store uses Unix
seconds.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone

# Seconds between 1970-01-01 and 2001-01-01 (UTC)
STORE_EPOCH_OFFSET = 978307200

NANOSECONDS = 1_000_000_000

DATE_FORMAT = "%Y-%m-%d"

_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# SQLite binds integers as signed 64-bit values
STORE_INT_MIN = -(2**63)
STORE_INT_MAX = 2**63 - 1

_END_OF_DAY = time(23, 59, 59)


def unix_to_store(unix_seconds: int) -> int:
    """Convert Unix seconds to store nanoseconds."""
    return (unix_seconds - STORE_EPOCH_OFFSET) * NANOSECONDS


def store_to_unix(store_ns: int) -> int:
    """Convert store nanoseconds to Unix seconds, truncating sub-second parts."""
    return store_ns // NANOSECONDS + STORE_EPOCH_OFFSET


def parse_calendar_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string with zero-padded month and day.

    Raises:
        ValueError: If the value is not a valid calendar date.
    """
    value = value.strip()
    if not _DATE_PATTERN.fullmatch(value):
        raise ValueError(f"date must be YYYY-MM-DD: {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def fits_store_int(value: int) -> bool:
    """Return True if ``value`` can be bound as a store integer."""
    return STORE_INT_MIN <= value <= STORE_INT_MAX


def start_of_day(day: date) -> int:
    """Unix seconds of 00:00:00 UTC on ``day``."""
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


def end_of_day(day: date) -> int:
    """Unix seconds of 23:59:59 UTC on ``day``."""
    return int(datetime.combine(day, _END_OF_DAY, tzinfo=timezone.utc).timestamp())
